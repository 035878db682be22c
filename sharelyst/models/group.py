from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sharelyst.db.session import Base

class Group(Base):
    __tablename__ = "groups"
    __table_args__ = (
        CheckConstraint("code >= 100000 AND code <= 999999", name="ck_groups_code_six_digits"),
    )

    id = Column(Integer, primary_key=True, index=True)
    code = Column(Integer, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)
    description = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    members = relationship("User", back_populates="group", order_by="User.id")
