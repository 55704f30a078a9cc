from sqlmodel import Field, SQLModel

class Setting(SQLModel, table=True):
    __tablename__ = "settings"
    key: str = Field(primary_key=True)
    value: str = Field(default="")
