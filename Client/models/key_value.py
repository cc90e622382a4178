"""
MusicSync Client - Key-Value Database Model

SQLAlchemy model backing the local persistent key-value store.

Author: MusicSync Project
"""

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import declarative_base

# Declarative base for the local store
Base = declarative_base()


class KeyValue(Base):
    """
    Key-value table - one row per stored key
    """
    __tablename__ = "key_value"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
