from flask_sqlalchemy import SQLAlchemy
from datetime import datetime

db = SQLAlchemy()


class SheetRow(db.Model):
    """
    One row of a named sheet in the generic row store.

    Rows are addressed by their position within the sheet, the same way the
    spreadsheet backend addresses them. Deleting a row shifts the rows below it up.
    """
    __tablename__ = "sheet_rows"

    id = db.Column(db.Integer, primary_key=True)
    sheet_name = db.Column(db.String(64), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, index=True)
    data = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<SheetRow {self.sheet_name}[{self.position}]>"

    def to_dict(self):
        return {
            'id': self.id,
            'sheet_name': self.sheet_name,
            'position': self.position,
            'data': dict(self.data or {}),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
