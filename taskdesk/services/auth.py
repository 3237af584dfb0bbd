from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from taskdesk.errors import AuthenticationFailed, UnexpectedError, ValidationFailed
from taskdesk.models.user import Role, User
from taskdesk.schemas.user import AuthResult, UserCreate, UserLogin, UserOut
from taskdesk.utils.auth import create_token, hash_password, verify_password
from taskdesk.utils.logger import setup_logger, log_info, log_warning, log_error

logger = setup_logger("services.auth")

EMAIL_TAKEN = {"email": ["email has already been taken"]}


def register(db: Session, payload: UserCreate) -> AuthResult:
    exists = db.query(User).filter(User.email == payload.email).first()
    if exists:
        log_warning(logger, "Registration rejected: email taken", email=payload.email)
        raise ValidationFailed(EMAIL_TAKEN)

    # UserCreate has already enforced the bcrypt 72-byte limit
    user = User(name=payload.name, email=payload.email, password=hash_password(payload.password), role=Role.USER.value)
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        # lost a race with a concurrent registration for the same email
        db.rollback()
        log_warning(logger, "Registration rejected by unique constraint", email=payload.email)
        raise ValidationFailed(EMAIL_TAKEN)
    except SQLAlchemyError as e:
        db.rollback()
        log_error(logger, "Registration failed", exc_info=True, email=payload.email)
        raise UnexpectedError(message="Registration failed.", detail=str(e))

    log_info(logger, "User registered", user_id=user.id)
    return AuthResult(user=UserOut.model_validate(user), token=create_token(user.id))


def login(db: Session, payload: UserLogin) -> AuthResult:
    user = db.query(User).filter(User.email == payload.email).first()
    # same failure whether the email is unknown or the password is wrong
    if not user or not verify_password(payload.password, user.password):
        log_warning(logger, "Login failed: invalid credentials")
        raise AuthenticationFailed(error="Invalid Credentials")

    log_info(logger, "User logged in", user_id=user.id)
    return AuthResult(user=UserOut.model_validate(user), token=create_token(user.id))
