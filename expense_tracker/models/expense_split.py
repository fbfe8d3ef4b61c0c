from sqlalchemy import Column, Integer, Float, ForeignKey
from sqlalchemy.orm import relationship
from expense_tracker.db.session import Base

class ExpenseSplit(Base):
    __tablename__ = "expense_splits"

    id = Column(Integer, primary_key=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    amount = Column(Float, nullable=False)
    shares = Column(Integer, nullable=True)

    expense = relationship("Expense", back_populates="splits")
