from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from models.user import User, UserRole, KycStatus
from utils.security import verify_password, get_password_hash, create_access_token, mask_sensitive_data
from utils.errors import EmailConflictError, UserNotFoundError, InvalidCredentialsError, StoreError
from datetime import timedelta
from config import settings
from typing import Optional
import logging

logger = logging.getLogger(__name__)

def normalize_email(email: str) -> str:
    """Identity matching is case-insensitive"""
    return (email or "").strip().casefold()

class AuthService:
    @staticmethod
    def find_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == normalize_email(email)).first()

    @staticmethod
    def register(
        db: Session,
        full_name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.OPERATOR
    ) -> User:
        """Create an account; a second account with the same email is rejected"""
        normalized_email = normalize_email(email)
        if AuthService.find_by_email(db, normalized_email):
            logger.warning(f"Signup with existing email: {mask_sensitive_data(normalized_email)}")
            raise EmailConflictError()

        user = User(
            full_name=full_name,
            email=normalized_email,
            password_hash=get_password_hash(password),
            role=role,
            kyc_status=KycStatus.NOT_SUBMITTED.value
        )
        try:
            db.add(user)
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            db.rollback()
            raise EmailConflictError()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Registration failed: {e}")
            raise StoreError("Registration failed. Try a different email.")
        db.refresh(user)

        logger.info(f"New user created: {user.id} with role: {user.role.value}")
        return user

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> User:
        """Verify credentials; unknown email and wrong password are distinct outcomes"""
        user = AuthService.find_by_email(db, email)
        if not user:
            logger.warning(f"Login attempt with unknown email: {mask_sensitive_data(normalize_email(email))}")
            raise UserNotFoundError()
        if not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for user: {user.id}")
            raise InvalidCredentialsError()
        logger.info(f"Successful login for user: {user.id}")
        return user

    @staticmethod
    def generate_token(user: User) -> str:
        """Session token carrying the account id as its only claim"""
        return create_access_token(
            data={"id": user.id},
            expires_delta=timedelta(minutes=settings.access_token_expire_minutes)
        )
