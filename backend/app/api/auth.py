"""Account endpoints: signup, login and the user list used to start chats."""

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.core.security import create_access_token, get_password_hash, verify_password
from app.database import get_db
from app.models import BusinessSite, Company, Department, Position, User
from app.schemas import LoginRequest, Token, UserCreate, UserRead

router = APIRouter(tags=["auth"])
settings = get_settings()


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _resolve_affiliation(db: Session, user_in: UserCreate) -> dict[str, object]:
    """Load the directory entries referenced by a signup and check they agree."""

    company = site = department = position = None
    if user_in.company_id is not None:
        company = db.get(Company, user_in.company_id)
        if company is None:
            raise _bad_request("Company not found")
    if user_in.business_site_id is not None:
        site = db.get(BusinessSite, user_in.business_site_id)
        if site is None:
            raise _bad_request("Business site not found")
        if company is not None and site.company_id != company.id:
            raise _bad_request("Business site does not belong to the company")
    if user_in.department_id is not None:
        department = db.get(Department, user_in.department_id)
        if department is None:
            raise _bad_request("Department not found")
        if site is not None and department.business_site_id != site.id:
            raise _bad_request("Department does not belong to the business site")
    if user_in.position_id is not None:
        position = db.get(Position, user_in.position_id)
        if position is None:
            raise _bad_request("Position not found")

    # A department implies its site and a site implies its company.
    if department is not None and site is None:
        site = department.business_site
    if site is not None and company is None:
        company = site.company
    return {"company": company, "business_site": site, "department": department, "position": position}


@router.post("/signup", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def signup(user_in: UserCreate, db: Session = Depends(get_db)) -> UserRead:
    """Register a new user in the system."""

    existing_user = db.execute(
        select(User).where(User.username == user_in.username)
    ).scalar_one_or_none()
    if existing_user is not None:
        raise _bad_request("Username is already taken")
    if user_in.code is not None:
        taken = db.execute(select(User.id).where(User.code == user_in.code)).scalar_one_or_none()
        if taken is not None:
            raise _bad_request("Employee code is already registered")

    user = User(
        username=user_in.username,
        full_name=user_in.full_name,
        hashed_password=get_password_hash(user_in.password),
        code=user_in.code,
        **_resolve_affiliation(db, user_in),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return UserRead.model_validate(user)


@router.post("/login", response_model=Token)
def login(credentials: LoginRequest, db: Session = Depends(get_db)) -> Token:
    """Authenticate a user and return a JWT access token."""

    db_user = db.execute(
        select(User).where(User.username == credentials.username)
    ).scalar_one_or_none()
    if db_user is None or not verify_password(credentials.password, db_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
        )

    access_token_expires = timedelta(minutes=settings.access_token_expire_minutes)
    access_token = create_access_token({"sub": db_user.username}, expires_delta=access_token_expires)
    return Token(
        access_token=access_token,
        token_type="bearer",
        expires_in=int(access_token_expires.total_seconds()),
        user=UserRead.model_validate(db_user),
    )


@router.get("/users", response_model=list[UserRead])
def list_users(db: Session = Depends(get_db)) -> list[UserRead]:
    """Return every registered user with their affiliation, ordered by username."""

    stmt = (
        select(User)
        .options(
            selectinload(User.company),
            selectinload(User.business_site),
            selectinload(User.department),
            selectinload(User.position),
        )
        .order_by(User.username)
    )
    return [UserRead.model_validate(user) for user in db.execute(stmt).scalars()]
