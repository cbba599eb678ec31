"""
Property service for the listing catalog.
Handles creation with uploads, ownership checks, public visibility, search and favorites.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import UploadFile
from app.config import settings
from app.repositories.property import PropertyRepository
from app.repositories.user import UserRepository
from app.repositories.agent import AgentRepository
from app.models.property import Property, PropertyType, ApprovalStatus, DOCUMENT_CATEGORIES
from app.models.image import PropertyImage
from app.models.user import User, UserRole
from app.schemas.property import PropertyCreate, PropertyUpdate, PropertyFilters
from app.services.storage import StorageService
from app.utils.exceptions import (
    APIException,
    BadRequestError,
    ConflictError,
    FileUploadError,
    NotFoundError,
    OwnershipError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

UPLOAD_FOLDER = "properties"


class PropertyFiles:
    """Files submitted with a property form."""

    def __init__(
        self,
        images: Optional[List[UploadFile]] = None,
        documents: Optional[Dict[str, UploadFile]] = None,
        other_documents: Optional[List[UploadFile]] = None
    ):
        self.images = images or []
        self.documents = documents or {}
        self.other_documents = other_documents or []

    def __bool__(self) -> bool:
        return bool(self.images or self.documents or self.other_documents)


class PropertyService:
    """
    Property service for managing listings.
    Non-public listings are only visible to their owner and to admins.
    """

    def __init__(self, db_session: AsyncSession, storage: Optional[StorageService] = None):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.agent_repo = AgentRepository(db_session)
        self.storage = storage

    # Uploads

    def _check_upload_limits(self, files: PropertyFiles, existing_images: int = 0, existing_others: int = 0) -> None:
        if existing_images + len(files.images) > settings.max_property_images:
            raise FileUploadError(f"A property can have at most {settings.max_property_images} images")
        if existing_others + len(files.other_documents) > settings.max_other_documents:
            raise FileUploadError(f"A property can have at most {settings.max_other_documents} other documents")
        unknown = set(files.documents) - set(DOCUMENT_CATEGORIES)
        if unknown:
            raise FileUploadError(f"Unknown document category: {', '.join(sorted(unknown))}")

    async def _store_files(self, files: PropertyFiles) -> Tuple[List[Tuple[str, UploadFile]], Dict[str, str], List[str]]:
        """
        Store every submitted file.

        Returns:
            Tuple of (stored image urls with their upload, document map, other document urls)
        """
        stored: List[str] = []
        try:
            images = []
            for upload in files.images:
                url = await self.storage.save_image(upload, UPLOAD_FOLDER)
                stored.append(url)
                images.append((url, upload))

            documents = {}
            for category, upload in files.documents.items():
                url = await self.storage.save_document(upload, f"{UPLOAD_FOLDER}/documents")
                stored.append(url)
                documents[category] = url

            others = []
            for upload in files.other_documents:
                url = await self.storage.save_document(upload, f"{UPLOAD_FOLDER}/documents")
                stored.append(url)
                others.append(url)

            return images, documents, others
        except Exception:
            self.storage.delete(stored)
            raise

    @staticmethod
    def _stored_urls(property_obj: Property) -> List[str]:
        urls = [image.url for image in property_obj.images]
        for key, value in (property_obj.documents or {}).items():
            if key == "other_documents":
                urls.extend(value or [])
            elif value:
                urls.append(value)
        return urls

    # Writes

    async def create_property(
        self,
        property_data: PropertyCreate,
        current_user: User,
        files: Optional[PropertyFiles] = None
    ) -> Property:
        """
        Create a listing owned by the current user.

        The listing always starts pending and unpublished; only admins may
        mark it featured. Agents get their profile attached.

        Raises:
            FileUploadError: If an upload is invalid or over the limits
        """
        files = files or PropertyFiles()
        self._check_upload_limits(files)

        create_data = property_data.model_dump()
        if create_data["type"] != PropertyType.LAND:
            create_data["land_info"] = None
        if not current_user.is_admin:
            create_data["is_featured"] = False

        create_data.update(
            owner_id=current_user.id,
            approval_status=ApprovalStatus.PENDING,
            is_published=False,
        )

        if current_user.role == UserRole.AGENT:
            agent = await self.agent_repo.get_by_user_id(current_user.id)
            if agent:
                create_data["agent_id"] = agent.id

        images, documents, others = await self._store_files(files) if files else ([], {}, [])

        try:
            property_obj = Property(**create_data)
            if others:
                documents["other_documents"] = others
            property_obj.documents = documents
            property_obj.images = [
                PropertyImage(
                    url=url,
                    alt=property_obj.title,
                    is_primary=index == 0,
                    display_order=index,
                    original_filename=upload.filename,
                )
                for index, (url, upload) in enumerate(images)
            ]

            property_obj = await self.property_repo.save(property_obj)
            logger.info(f"Property created by user {current_user.id}: {property_obj.title} (ID: {property_obj.id})")
            return property_obj

        except Exception as e:
            if self.storage:
                self.storage.delete([url for url, _ in images] + list(documents.values()) + others)
            logger.error(f"Failed to create property for user {current_user.id}: {e}")
            raise

    async def _get_managed(self, property_id: uuid.UUID, current_user: User) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise NotFoundError("Property", str(property_id))
        if not current_user.can_manage(property_obj.owner_id):
            logger.warning(f"User {current_user.id} denied access to property {property_id}")
            raise OwnershipError("property")
        return property_obj

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        current_user: User,
        files: Optional[PropertyFiles] = None
    ) -> Property:
        """
        Update a listing as its owner or an admin.

        New images are appended; the first of them becomes primary only when
        the listing had no primary image. New documents are merged in.
        Moderation state never changes here.

        Raises:
            NotFoundError: If the property doesn't exist
            OwnershipError: If the user neither owns it nor is an admin
        """
        try:
            property_obj = await self._get_managed(property_id, current_user)
            files = files or PropertyFiles()

            existing_others = len((property_obj.documents or {}).get("other_documents") or [])
            self._check_upload_limits(files, len(property_obj.images), existing_others)

            update_data = property_data.model_dump(exclude_unset=True)
            if not current_user.is_admin:
                update_data.pop("is_featured", None)

            for field, value in update_data.items():
                setattr(property_obj, field, value)

            if property_obj.type != PropertyType.LAND:
                property_obj.land_info = None

            stored: List[str] = []
            if files:
                images, documents, others = await self._store_files(files)
                stored = [url for url, _ in images] + list(documents.values()) + others

                had_primary = any(image.is_primary for image in property_obj.images)
                next_order = len(property_obj.images)
                for offset, (url, upload) in enumerate(images):
                    property_obj.images.append(
                        PropertyImage(
                            url=url,
                            alt=property_obj.title,
                            is_primary=not had_primary and offset == 0,
                            display_order=next_order + offset,
                            original_filename=upload.filename,
                        )
                    )

                merged = dict(property_obj.documents or {})
                replaced = [merged[key] for key in documents if merged.get(key)]
                merged.update(documents)
                if others:
                    merged["other_documents"] = list(merged.get("other_documents") or []) + others
                property_obj.documents = merged
            else:
                replaced = []

            try:
                property_obj = await self.property_repo.save(property_obj)
            except Exception:
                if stored:
                    self.storage.delete(stored)
                raise

            if replaced:
                self.storage.delete(replaced)

            logger.info(f"Property updated by user {current_user.id}: {property_id}")
            return property_obj

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise

    async def delete_property(self, property_id: uuid.UUID, current_user: User) -> None:
        """
        Delete a listing and its stored files.

        Raises:
            NotFoundError: If the property doesn't exist
            OwnershipError: If the user neither owns it nor is an admin
        """
        property_obj = await self._get_managed(property_id, current_user)
        urls = self._stored_urls(property_obj)

        await self.property_repo.delete(property_id)
        if self.storage and urls:
            self.storage.delete(urls)

        logger.info(f"Property deleted by user {current_user.id}: {property_id}")

    # Reads

    async def get_property(self, property_id: uuid.UUID, current_user: Optional[User] = None) -> Property:
        """
        Get a listing and count the view.

        Listings that are not public are reported as missing to everyone but
        their owner and admins.
        """
        # Read before the counter update: a failed update rolls back and expires the session
        viewer_id = current_user.id if current_user else None
        viewer_is_admin = bool(current_user and current_user.is_admin)

        try:
            await self.property_repo.increment_views(property_id)
        except Exception as e:
            logger.warning(f"Could not increment views for property {property_id}: {e}")

        property_obj = await self.property_repo.reload(property_id)
        if not property_obj:
            raise NotFoundError("Property", str(property_id))

        if not property_obj.is_publicly_visible:
            if not viewer_is_admin and (viewer_id is None or viewer_id != property_obj.owner_id):
                raise NotFoundError("Property", str(property_id))

        return property_obj

    async def list_properties(
        self,
        filters: PropertyFilters,
        page: int = 1,
        limit: int = 10,
        sort: str = "newest",
        public_only: bool = True
    ) -> Tuple[List[Property], int]:
        return await self.property_repo.search_properties(
            filters, page=page, limit=limit, sort=sort, public_only=public_only
        )

    async def search(self, q: Optional[str], page: int = 1, limit: int = 10) -> Tuple[List[Property], int]:
        """
        Relevance search over published listings.

        Raises:
            BadRequestError: If the query is empty
        """
        query = (q or "").strip()
        if not query:
            raise BadRequestError("Search query is required")
        return await self.property_repo.text_search(query, page=page, limit=limit)

    async def get_featured(self, limit: int = 6) -> List[Property]:
        return await self.property_repo.get_featured(limit)

    async def get_by_agent(self, agent_id: uuid.UUID, page: int = 1, limit: int = 10) -> Tuple[List[Property], int]:
        return await self.property_repo.get_published_by(Property.agent_id == agent_id, page=page, limit=limit)

    async def get_by_type(self, property_type: PropertyType, page: int = 1, limit: int = 10) -> Tuple[List[Property], int]:
        return await self.property_repo.get_published_by(Property.type == property_type, page=page, limit=limit)

    async def get_categories(self) -> List[Dict[str, Any]]:
        counts = await self.property_repo.get_category_counts()
        return [{"type": property_type, "count": count} for property_type, count in counts.items()]

    async def get_locations(self) -> Dict[str, List[str]]:
        return await self.property_repo.get_locations()

    async def get_user_properties(self, current_user: User, page: int = 1, limit: int = 20) -> Tuple[List[Property], int]:
        """The user's own listings in every moderation state."""
        return await self.property_repo.get_by_owner(current_user.id, page=page, limit=limit)

    # Favorites

    async def add_favorite(self, current_user: User, property_id: uuid.UUID) -> None:
        """
        Bookmark a listing.

        Raises:
            NotFoundError: If the property doesn't exist
            ConflictError: If it is already a favorite
        """
        if not await self.property_repo.get_by_id(property_id):
            raise NotFoundError("Property", str(property_id))

        if await self.user_repo.is_favorite(current_user.id, property_id):
            raise ConflictError("Property already in favorites")

        await self.user_repo.add_favorite(current_user.id, property_id)
        logger.info(f"User {current_user.id} added favorite {property_id}")

    async def remove_favorite(self, current_user: User, property_id: uuid.UUID) -> None:
        removed = await self.user_repo.remove_favorite(current_user.id, property_id)
        if removed:
            logger.info(f"User {current_user.id} removed favorite {property_id}")

    async def list_favorites(self, current_user: User) -> List[Property]:
        return await self.user_repo.list_favorites(current_user.id)
