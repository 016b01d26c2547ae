from eduverse.schemas.common import CamelModel


class UnreadCount(CamelModel):
    count: int


class MarkedRead(CamelModel):
    updated: int
