from modules.baking.repositories.django_repository import BakingDjangoRepository
from modules.baking.repositories.interfaces import IBakingRepository

__all__ = ["IBakingRepository", "BakingDjangoRepository"]
