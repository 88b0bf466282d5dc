from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from src.portal.core.models.session import Identity
from src.portal.core.services.database.db_session import DbSessionService
from src.portal.entities.core.user.entity import User
from src.portal.entities.core.user.repository import UserRepository


class UserManagementService:
    def __init__(self, db_service: DbSessionService):
        self._db_service = db_service

    def provision_user(self, identity: Identity) -> User | None:
        """Create or refresh the user behind ``identity`` (JIT provisioning).

        A storage failure is logged and does not block the login; the
        submission path provisions again before it needs the row.
        """
        try:
            with self._db_service.session_scope() as session:
                return UserRepository(session).upsert_profile(
                    external_id=identity.external_id,
                    display_name=identity.display_name,
                    avatar_ref=identity.avatar_ref,
                    is_member=identity.is_member,
                )
        except SQLAlchemyError as e:
            logger.bind(user_id=identity.external_id).error("Error during user provisioning: {}", e)
            return None
