# happytails/schemas/common.py
from sqlmodel import SQLModel


class MessageEnvelope(SQLModel):
    """
    Response for mutations that do not echo the resource.
    """

    success: bool = True
    message: str


class PeriodCounts(SQLModel):
    """
    Row counts overall and for the recent windows an admin list page shows.
    """

    total: int
    monthly: int
    weekly: int
    daily: int
