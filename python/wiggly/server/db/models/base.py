"""Declarative base shared by all Wiggly database models."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
