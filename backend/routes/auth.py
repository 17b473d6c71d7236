# backend/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas import user as schemas
from utils.audit import write_log
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, get_current_user

router = APIRouter(tags=["Auth"])


# Register a new user; the very first account becomes admin
@router.post("/register", response_model=schemas.UserResponse)
def register(user: schemas.UserCreate, db: Session = Depends(get_db)):
    normalized_email = user.email.strip().lower()

    db_user = db.query(User).filter(func.lower(User.email) == normalized_email).first()
    if db_user:
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  meta={"email": normalized_email, "reason": "Email exists"})
        raise HTTPException(status_code=400, detail="Email already registered")

    role = "admin" if db.query(User).count() == 0 else "user"
    new_user = User(
        email=normalized_email,
        password_hash=get_password_hash(user.password),
        role=role,
        first_name=user.first_name,
        last_name=user.last_name,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth",
              status="SUCCESS", meta={"email": new_user.email})
    return new_user


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    db_user = db.query(User).filter(User.email == email).first()

    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", meta={"email": email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    access_token = create_access_token(data={"sub": db_user.email, "role": db_user.role})
    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", meta={"email": db_user.email})
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
