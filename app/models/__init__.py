from app.models.user import User
from app.models.saved_business import SavedBusiness

__all__ = [
    "User",
    "SavedBusiness",
]
