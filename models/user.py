from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Text


class User(BaseModel, Base):
    __tablename__ = "users"
    username = Column(String(64), nullable=False, unique=True, index=True)  # stored lower-cased
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False, index=True)
    avatar = Column(String(1024), nullable=True)  # media url
    cover_image = Column(String(1024), nullable=True)  # media url
    password_hash = Column(String(255), nullable=False)
    # the single refresh token currently accepted for this user; null when logged out
    refresh_token = Column(Text, nullable=True)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")
