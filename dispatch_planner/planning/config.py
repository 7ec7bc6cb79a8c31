"""
Planning configuration module.

Stage order, due-date field names and the fixed working-day offsets used by
backward and forward planning.
"""

from typing import Dict, List, Optional


class PlanningConfig:
    """
    Configuration for stage planning.

    Offsets are working days before dispatch (D-5 .. D). Each adjacent pair of
    stages is exactly one working day apart.
    """

    STORE1 = 'STORE1'
    CABLE_PRODUCTION = 'CABLE_PRODUCTION'
    STORE2 = 'STORE2'
    MOULDING = 'MOULDING'
    FG_SECTION = 'FG_SECTION'
    DISPATCH = 'DISPATCH'

    # Canonical production order
    STAGE_ORDER: List[str] = [STORE1, CABLE_PRODUCTION, STORE2, MOULDING, FG_SECTION, DISPATCH]

    # Stage -> persisted due-date field on the Dispatch / PO records
    STAGE_DUE_DATE_FIELDS: Dict[str, str] = {
        STORE1: 'Store1DueDate',
        CABLE_PRODUCTION: 'CableProductionDueDate',
        STORE2: 'Store2DueDate',
        MOULDING: 'MouldingDueDate',
        FG_SECTION: 'FGSectionDueDate',
        DISPATCH: 'DispatchDate',
    }

    # Working days before dispatch
    STAGE_OFFSETS: Dict[str, int] = {
        STORE1: 5,
        CABLE_PRODUCTION: 4,
        STORE2: 3,
        MOULDING: 2,
        FG_SECTION: 1,
        DISPATCH: 0,
    }

    STAGE_DISPLAY_NAMES: Dict[str, str] = {
        STORE1: 'Store 1',
        CABLE_PRODUCTION: 'Cable Production',
        STORE2: 'Store 2',
        MOULDING: 'Moulding',
        FG_SECTION: 'FG Section',
        DISPATCH: 'Dispatch',
    }

    # Names shown in the stage date edit dialog
    STAGE_LONG_NAMES: Dict[str, str] = {
        STORE1: 'Store 1 Cable Production',
        CABLE_PRODUCTION: 'Cable Production',
        STORE2: 'Store 2 Moulding FG',
        MOULDING: 'Moulding',
        FG_SECTION: 'FG Section (QC)',
        DISPATCH: 'Dispatch',
    }

    # Stages whose due dates must land on a working day for a normal dispatch
    STORE_STAGES: List[str] = [STORE1, STORE2]

    POWER_CORD = 'POWER_CORD'
    CABLE_ONLY = 'CABLE_ONLY'
    ORDER_TYPES: List[str] = [POWER_CORD, CABLE_ONLY]
    DEFAULT_ORDER_TYPE: str = POWER_CORD

    # Working days needed before dispatch to run every production stage
    REQUIRED_WORKING_DAYS: int = 5

    @classmethod
    def normalize_stage(cls, stage: Optional[str]) -> Optional[str]:
        """
        Resolve a stage code, field name or display name to its stage code.

        Returns None for unknown stages.
        """
        if not stage:
            return None

        normalized = str(stage).strip()
        if normalized.upper() in cls.STAGE_OFFSETS:
            return normalized.upper()

        lookup = normalized.lower()
        for code in cls.STAGE_ORDER:
            if lookup in (
                cls.STAGE_DUE_DATE_FIELDS[code].lower(),
                cls.STAGE_DISPLAY_NAMES[code].lower(),
                cls.STAGE_LONG_NAMES[code].lower(),
            ):
                return code
        return None

    @classmethod
    def stage_label(cls, stage: str) -> str:
        """D-n label for a stage, 'D' for dispatch itself."""
        offset = cls.STAGE_OFFSETS[stage]
        return f"D-{offset}" if offset else "D"
