from modules.delivery.repositories.django_repository import TripDjangoRepository
from modules.delivery.repositories.interfaces import ITripRepository

__all__ = ["ITripRepository", "TripDjangoRepository"]
