"""
Auth API Endpoints.

Login, token refresh, profile management and admin-only user registration.
"""

from fastapi import APIRouter, Depends, status

from api.dependencies import get_current_user, get_services, require_permission
from api.models import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    PasswordValidationRequest,
    PasswordValidationResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
)
from domain.access_policy import Permission
from domain.user import User
from services.auth_service import AuthResult, NewUser
from services.container import RegistryServices

router = APIRouter(prefix="/auth")


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.from_domain(result.user),
        token=result.token,
        expires_in=result.expires_in,
    )


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register User",
    description="Create a user account. Requires the user management permission (ADMIN)."
)
def register_user(
    request: RegisterRequest,
    _: User = Depends(require_permission(Permission.USER_MANAGE)),
    services: RegistryServices = Depends(get_services),
):
    user = services.auth.register(
        NewUser(
            email=request.email,
            password=request.password,
            first_name=request.first_name,
            last_name=request.last_name,
            role=request.role,
        )
    )
    return UserResponse.from_domain(user)


@router.post("/login", response_model=AuthResponse, summary="Log In")
def login(request: LoginRequest, services: RegistryServices = Depends(get_services)):
    """
    Exchange email and password for a bearer token.

    **Example request:**
    ```json
    {"email": "admin@example.com", "password": "admin123"}
    ```
    """
    return _auth_response(services.auth.login(request.email, request.password))


@router.post("/refresh", response_model=AuthResponse, summary="Refresh Token")
def refresh_token(
    user: User = Depends(get_current_user),
    services: RegistryServices = Depends(get_services),
):
    return _auth_response(services.auth.refresh_token(user.user_id))


@router.get("/profile", response_model=UserResponse, summary="Current User")
def get_profile(user: User = Depends(get_current_user)):
    return UserResponse.from_domain(user)


@router.put("/profile", response_model=UserResponse, summary="Update Profile")
def update_profile(
    request: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    services: RegistryServices = Depends(get_services),
):
    updated = services.auth.update_profile(user.user_id, request.model_dump(exclude_unset=True))
    return UserResponse.from_domain(updated)


@router.post("/logout", response_model=MessageResponse, summary="Log Out")
def logout(_: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards its copy."""
    return MessageResponse(message="Logged out successfully")


@router.post(
    "/validate-password",
    response_model=PasswordValidationResponse,
    summary="Check Password Strength"
)
def validate_password(
    request: PasswordValidationRequest,
    services: RegistryServices = Depends(get_services),
):
    result = services.auth.validate_password(request.password)
    return PasswordValidationResponse(
        is_valid=result.is_valid, errors=result.errors, strength=result.strength
    )


@router.put("/change-password", response_model=MessageResponse, summary="Change Password")
def change_password(
    request: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    services: RegistryServices = Depends(get_services),
):
    services.auth.change_password(user.user_id, request.current_password, request.new_password)
    return MessageResponse(message="Password changed successfully")
