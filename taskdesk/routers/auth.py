from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from taskdesk.schemas.envelope import envelope
from taskdesk.schemas.user import UserCreate, UserLogin
from taskdesk.services import auth as auth_service
from taskdesk.database import get_db

router = APIRouter(tags=["auth"])

@router.post("/register", status_code=201)
def register(user: UserCreate, db: Session = Depends(get_db)):
    result = auth_service.register(db, user)
    return envelope(data=result, message="User registered successfully.", status_code=201)

@router.post("/login")
def login(user: UserLogin, db: Session = Depends(get_db)):
    result = auth_service.login(db, user)
    return envelope(data=result, message="Login successful")
