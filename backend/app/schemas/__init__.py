"""Pydantic schemas for the aero-club API."""

from app.schemas.booking import *
from app.schemas.workflow import *
from app.schemas.scheduler import *
from app.schemas.defect import *
