from app.schemas.intelligence import ChatRequest, ChatTurn, IntelligenceData, IntelligenceType
from app.schemas.saved_business import MessageResponse, SaveBusinessRequest, SavedBusinessesResponse
from app.schemas.user import AuthResponse, LoginRequest, ProfileResponse, RegisterRequest, UserRead
from app.schemas.yelp import LocationDetails, QueryYelpAIArgs, YelpBusiness, YelpSearchResult

__all__ = [
    "ChatRequest",
    "ChatTurn",
    "IntelligenceData",
    "IntelligenceType",
    "MessageResponse",
    "SaveBusinessRequest",
    "SavedBusinessesResponse",
    "AuthResponse",
    "LoginRequest",
    "ProfileResponse",
    "RegisterRequest",
    "UserRead",
    "LocationDetails",
    "QueryYelpAIArgs",
    "YelpBusiness",
    "YelpSearchResult",
]
