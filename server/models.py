from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from server.database import Base
from server.enums import TaskPriority

# =========================================================
# DATABASE MODELS
# The reminder scheduler only reads these rows and writes
# the notified_24h / notified_1h flags.
# =========================================================
class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    username = Column(String(100), nullable=False)
    email = Column(String(255))
    telegram_chat_id = Column(String(64))
    telegram_enabled = Column(Boolean, nullable=False, default=False)
    email_enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tasks = relationship("Task", back_populates="owner")

class Task(Base):
    __tablename__ = "tasks"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    subject = Column(String(100))
    description = Column(Text)
    deadline = Column(DateTime, index=True)
    priority_level = Column(SQLEnum(TaskPriority), nullable=False, default=TaskPriority.schedule)
    is_completed = Column(Boolean, nullable=False, default=False)
    notified_24h = Column(Boolean, nullable=False, default=False)
    notified_1h = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="tasks")
