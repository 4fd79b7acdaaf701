"""
Wiggly Server - Trade Model

This module defines the database model for journal trades. Rows are written
by the trade-entry forms; the AI chat layer only reads them.
"""

from typing import Any, Dict

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from .base import Base


class Trade(Base):
    """A single journal trade."""

    __tablename__ = "trades"

    # Primary key
    id = Column(Integer, primary_key=True, index=True)

    # Ownership
    user_id = Column(String(100), nullable=True, index=True, comment="Owner user id")

    # Instrument and trade info
    symbol = Column(String(50), nullable=False, index=True, comment="Instrument symbol")
    type = Column(
        String(20), nullable=False, default="LONG", comment="Position type: LONG/SHORT"
    )
    quantity = Column(Numeric(20, 8), nullable=False, default=0, comment="Quantity")
    entry_price = Column(Numeric(20, 8), nullable=True, comment="Entry price")
    exit_price = Column(Numeric(20, 8), nullable=True, comment="Exit price")
    pnl = Column(Numeric(20, 4), nullable=True, comment="Realized P&L")
    date = Column(DateTime(timezone=True), nullable=False, index=True, comment="Trade date")

    # Journal annotations
    strategy = Column(String(200), nullable=True, comment="Free-text strategy label")
    mood = Column(String(200), nullable=True, comment="Free-text mood label")
    notes = Column(Text, nullable=True, comment="Free-text notes")
    screenshot_count = Column(
        Integer, nullable=False, default=0, comment="Number of attached screenshots"
    )

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self):
        return f"<Trade(id={self.id}, symbol='{self.symbol}', date='{self.date}', pnl={self.pnl})>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "symbol": self.symbol,
            "type": self.type,
            "quantity": float(self.quantity) if self.quantity is not None else None,
            "entry_price": (
                float(self.entry_price) if self.entry_price is not None else None
            ),
            "exit_price": float(self.exit_price) if self.exit_price is not None else None,
            "pnl": float(self.pnl) if self.pnl is not None else None,
            "date": self.date.isoformat() if self.date else None,
            "strategy": self.strategy,
            "mood": self.mood,
            "screenshot_count": self.screenshot_count,
        }
