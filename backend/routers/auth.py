from fastapi import APIRouter, Depends, HTTPException, status, Request
import logging

from services.auth import AuthService, AuthUser, LoginRequest, RegisterRequest, Token, issue_token
from services.audit import log_audit_event, AuditAction, ResourceType
from services.repository import Repository
from middleware.auth import get_current_user_required
from routers.dependencies import get_repository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


def _client_ip(request: Request) -> str:
    """Best-effort client address for audit entries"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return ""


@router.post("/login", response_model=Token)
async def login(
    login_data: LoginRequest,
    request: Request,
    repo: Repository = Depends(get_repository)
):
    """
    Authenticate an operator and return a JWT access token.

    Example:
    ```json
    {
      "email": "demo@example.com",
      "password": "demo123"
    }
    ```
    """
    auth_service = AuthService(repo)
    token = await auth_service.login(login_data.email, login_data.password)

    if not token:
        log_audit_event(
            AuditAction.USER_LOGIN_FAILED,
            ResourceType.USER,
            None,
            details={"ip_address": _client_ip(request)},
            success=False
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"}
        )

    log_audit_event(
        AuditAction.USER_LOGIN,
        ResourceType.USER,
        token.user_id,
        user_id=token.user_id,
        details={"ip_address": _client_ip(request)}
    )
    return token


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    register_data: RegisterRequest,
    request: Request,
    repo: Repository = Depends(get_repository)
):
    """
    Create an operator account and log it in.

    Answers 400 when the email is malformed or already registered.
    """
    auth_service = AuthService(repo)
    try:
        user = await auth_service.register_user(
            register_data.email, register_data.password, register_data.name
        )
    except ValueError as e:
        log_audit_event(
            AuditAction.USER_REGISTER_FAILED,
            ResourceType.USER,
            None,
            details={"ip_address": _client_ip(request), "reason": str(e)},
            success=False
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    log_audit_event(
        AuditAction.USER_REGISTERED,
        ResourceType.USER,
        user.id,
        user_id=user.id,
        details={"ip_address": _client_ip(request)}
    )
    return issue_token(user)


@router.get("/me", response_model=AuthUser)
async def get_me(
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    """Return the authenticated operator."""
    user = await AuthService(repo).get_user(current_user.id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User no longer active",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user
