"""AppUser model - platform users with email/password or OAuth authentication."""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash
from salesdesk.database import Base, generate_id


class AppUser(Base):
    """AppUser model - owner of every client, product, quote and sale."""

    __tablename__ = 'app_user'

    id = Column(String(32), primary_key=True, default=generate_id)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=True)  # Nullable for OAuth users
    full_name = Column(String(200), nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    # OAuth fields
    google_sub = Column(String(255), nullable=True, unique=True)
    auth_provider = Column(String(20), nullable=False, default='local')
    email_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def set_password(self, password):
        """Set password hash (for local auth)."""
        self.password_hash = generate_password_hash(password, method='scrypt')
        self.auth_provider = 'local'
        self.email_verified = True

    def check_password(self, password):
        """Check password against hash (for local auth)."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def is_oauth_user(self):
        """Check if user uses OAuth authentication."""
        return self.auth_provider != 'local'

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'auth_provider': self.auth_provider,
        }

    def __repr__(self):
        return f"<AppUser(id={self.id}, email='{self.email}', provider='{self.auth_provider}')>"
