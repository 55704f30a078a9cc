import uuid
from datetime import datetime
from sqlmodel import Field, SQLModel

class Mantra(SQLModel, table=True):
    """
    ユーザーが入力したマントラ(アファメーション)。作成後は変更しない。
    """
    __tablename__ = "mantras"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    text: str
    created_at: datetime = Field(default_factory=datetime.now)
