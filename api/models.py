"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Field constraints here check input *shape*; business rules are enforced again
by the services.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.land_plot import LandPlot, PlotStatus, SizeUnit
from domain.pagination import Pagination
from domain.statistics import TransactionStatistics
from domain.transaction import CommissionBreakdown, TransactionDetails
from domain.user import Role, User


# ============================================================================
# Common Models
# ============================================================================

class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: ErrorDetail

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": {"code": "INVALID_STATE", "message": "Land plot is already sold"}
            }
        }


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class PaginationResponse(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def from_domain(cls, pagination: Pagination) -> "PaginationResponse":
        return cls(
            current_page=pagination.current_page,
            total_pages=pagination.total_pages,
            total_items=pagination.total_items,
            items_per_page=pagination.items_per_page,
            has_next_page=pagination.has_next_page,
            has_prev_page=pagination.has_prev_page,
        )


# ============================================================================
# Auth Models
# ============================================================================

class RegisterRequest(BaseModel):
    """Request to create a user account (admin only)."""
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    role: Role = Role.STAFF

    class Config:
        json_schema_extra = {
            "example": {
                "email": "clerk@example.com",
                "password": "secret123",
                "first_name": "Ama",
                "last_name": "Mensah",
                "role": "STAFF"
            }
        }


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    """A user without credentials."""
    user_id: UUID
    email: str
    role: Role
    first_name: str
    last_name: str
    full_name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            user_id=user.user_id,
            email=user.email,
            role=user.role,
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.full_name,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthResponse(BaseModel):
    success: bool = True
    user: UserResponse
    token: str
    expires_in: str


class ProfileUpdateRequest(BaseModel):
    email: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(None, min_length=2, max_length=50)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class PasswordValidationRequest(BaseModel):
    password: str = Field(..., min_length=1)


class PasswordValidationResponse(BaseModel):
    is_valid: bool
    errors: List[str]
    strength: str


# ============================================================================
# Land Plot Models
# ============================================================================

class LandPlotCreateRequest(BaseModel):
    """Request to register a land plot."""
    plot_number: str = Field(..., min_length=1, max_length=50)
    location: str = Field(..., min_length=2, max_length=200)
    size: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    size_unit: SizeUnit = SizeUnit.ACRES
    status: PlotStatus = PlotStatus.AVAILABLE
    owner_name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    registration_date: Optional[date] = None

    class Config:
        json_schema_extra = {
            "example": {
                "plot_number": "GB-001",
                "location": "Gbewaa North",
                "size": "2.50",
                "size_unit": "ACRES",
                "owner_name": "Kwame Asante",
                "description": "Corner plot near the main road"
            }
        }


class LandPlotUpdateRequest(BaseModel):
    """Administrative edit; omitted fields are left unchanged."""
    plot_number: Optional[str] = Field(None, min_length=1, max_length=50)
    location: Optional[str] = Field(None, min_length=2, max_length=200)
    size: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    size_unit: Optional[SizeUnit] = None
    status: Optional[PlotStatus] = None
    owner_name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    registration_date: Optional[date] = None


class LandPlotResponse(BaseModel):
    plot_id: UUID
    plot_number: str
    location: str
    size: Decimal
    size_unit: SizeUnit
    formatted_size: str
    status: PlotStatus
    is_available: bool
    owner_name: str
    description: Optional[str] = None
    registration_date: date
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, plot: LandPlot) -> "LandPlotResponse":
        return cls(
            plot_id=plot.plot_id,
            plot_number=plot.plot_number,
            location=plot.location,
            size=plot.size,
            size_unit=plot.size_unit,
            formatted_size=plot.formatted_size,
            status=plot.status,
            is_available=plot.is_available,
            owner_name=plot.owner_name,
            description=plot.description,
            registration_date=plot.registration_date,
            created_at=plot.created_at,
            updated_at=plot.updated_at,
        )


class LandPlotListResponse(BaseModel):
    items: List[LandPlotResponse]
    pagination: PaginationResponse


class LandStatisticsResponse(BaseModel):
    total_plots: int
    available_plots: int
    sold_plots: int
    disputed_plots: int
    reserved_plots: int
    status_breakdown: Dict[str, int]


# ============================================================================
# Transaction Models
# ============================================================================

class TransactionCreateRequest(BaseModel):
    """Request to record the sale of a land plot."""
    land_plot_id: UUID
    buyer_name: str = Field(..., min_length=2, max_length=100)
    buyer_contact: str = Field(..., min_length=10, max_length=50)
    seller_name: str = Field(..., min_length=2, max_length=100)
    seller_contact: str = Field(..., min_length=10, max_length=50)
    sale_price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    commission_rate: Optional[Decimal] = Field(
        None,
        ge=0,
        le=1,
        max_digits=5,
        decimal_places=4,
        description="Fraction between 0 and 1; the configured default applies when omitted"
    )
    transaction_date: Optional[date] = None

    class Config:
        json_schema_extra = {
            "example": {
                "land_plot_id": "123e4567-e89b-12d3-a456-426614174000",
                "buyer_name": "Yaw Boateng",
                "buyer_contact": "0244123456",
                "seller_name": "Kwame Asante",
                "seller_contact": "0207654321",
                "sale_price": "50000.00",
                "commission_rate": "0.15"
            }
        }


class TransactionUpdateRequest(BaseModel):
    """Only contact details and the receipt path can be edited."""
    buyer_contact: Optional[str] = Field(None, min_length=10, max_length=50)
    seller_contact: Optional[str] = Field(None, min_length=10, max_length=50)
    receipt_path: Optional[str] = Field(None, max_length=500)


class CommissionRequest(BaseModel):
    sale_price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=1, max_digits=5, decimal_places=4)


class CommissionResponse(BaseModel):
    sale_price: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    net_amount: Decimal
    commission_percentage: str

    @classmethod
    def from_domain(cls, breakdown: CommissionBreakdown) -> "CommissionResponse":
        return cls(
            sale_price=breakdown.sale_price,
            commission_rate=breakdown.commission_rate,
            commission_amount=breakdown.commission_amount,
            net_amount=breakdown.net_amount,
            commission_percentage=breakdown.commission_percentage,
        )


class LandPlotSummaryResponse(BaseModel):
    plot_id: UUID
    plot_number: str
    location: str
    size: Decimal
    size_unit: SizeUnit
    status: PlotStatus
    owner_name: Optional[str] = None


class CreatorResponse(BaseModel):
    user_id: UUID
    first_name: str
    last_name: str
    email: str


class TransactionResponse(BaseModel):
    transaction_id: UUID
    land_plot_id: UUID
    buyer_name: str
    buyer_contact: str
    seller_name: str
    seller_contact: str
    sale_price: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    commission_percentage: str
    net_amount: Decimal
    transaction_date: date
    receipt_path: Optional[str] = None
    created_by: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    land_plot: Optional[LandPlotSummaryResponse] = None
    creator: Optional[CreatorResponse] = None

    @classmethod
    def from_domain(cls, details: TransactionDetails) -> "TransactionResponse":
        tx = details.transaction
        plot = details.land_plot
        creator = details.creator
        return cls(
            transaction_id=tx.transaction_id,
            land_plot_id=tx.land_plot_id,
            buyer_name=tx.buyer_name,
            buyer_contact=tx.buyer_contact,
            seller_name=tx.seller_name,
            seller_contact=tx.seller_contact,
            sale_price=tx.sale_price,
            commission_rate=tx.commission_rate,
            commission_amount=tx.commission_amount,
            commission_percentage=tx.commission_percentage,
            net_amount=tx.net_amount,
            transaction_date=tx.transaction_date,
            receipt_path=tx.receipt_path,
            created_by=tx.created_by,
            created_at=tx.created_at,
            updated_at=tx.updated_at,
            land_plot=LandPlotSummaryResponse(
                plot_id=plot.plot_id,
                plot_number=plot.plot_number,
                location=plot.location,
                size=plot.size,
                size_unit=plot.size_unit,
                status=plot.status,
                owner_name=plot.owner_name,
            ) if plot is not None else None,
            creator=CreatorResponse(
                user_id=creator.user_id,
                first_name=creator.first_name,
                last_name=creator.last_name,
                email=creator.email,
            ) if creator is not None else None,
        )


class TransactionListResponse(BaseModel):
    items: List[TransactionResponse]
    pagination: PaginationResponse


class MonthlyBreakdownResponse(BaseModel):
    month: str
    transactions: int
    revenue: Decimal
    commission: Decimal


class TransactionStatisticsResponse(BaseModel):
    total_transactions: int
    total_revenue: Decimal
    total_commission: Decimal
    average_price: Decimal
    min_price: Decimal
    max_price: Decimal
    net_revenue: Decimal
    monthly_breakdown: List[MonthlyBreakdownResponse]

    @classmethod
    def from_domain(cls, stats: TransactionStatistics) -> "TransactionStatisticsResponse":
        return cls(
            total_transactions=stats.total_transactions,
            total_revenue=stats.total_revenue,
            total_commission=stats.total_commission,
            average_price=stats.average_price,
            min_price=stats.min_price,
            max_price=stats.max_price,
            net_revenue=stats.net_revenue,
            monthly_breakdown=[
                MonthlyBreakdownResponse(
                    month=row.month,
                    transactions=row.transactions,
                    revenue=row.revenue,
                    commission=row.commission,
                )
                for row in stats.monthly_breakdown
            ],
        )
