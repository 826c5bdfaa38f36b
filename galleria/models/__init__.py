from galleria.models.gallery import Gallery
from galleria.models.photo import Photo
from galleria.models.subscriber import Subscriber
from galleria.models.user import AdminUser

__all__ = ["Gallery", "Photo", "Subscriber", "AdminUser"]
