"""
Unit tests for repository classes.
Tests database operations, filtering, pagination and favorites.
"""

import pytest
import uuid
from decimal import Decimal

from app.models.user import User, UserRole
from app.models.property import Property, PropertyType, PropertyStatus, ApprovalStatus
from app.repositories.user import UserRepository
from app.repositories.property import PropertyRepository
from app.schemas.property import PropertyFilters
from tests.conftest import UserFactory, PropertyFactory


class TestBaseRepository:
    """Test base repository functionality through UserRepository."""

    @pytest.mark.asyncio
    async def test_create(self, user_repository: UserRepository):
        """Test creating a record."""
        user = await user_repository.create({
            "name": "Created User",
            "email": "created@example.com",
            "hashed_password": User.hash_password("secret1"),
        })

        assert user.id is not None
        assert user.role == UserRole.USER
        assert user.is_active is True
        assert user.created_at is not None
        assert user.updated_at is not None

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, user_repository: UserRepository):
        assert await user_repository.get_by_id(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_get_by_field(self, user_repository: UserRepository, test_user: User):
        found = await user_repository.get_by_field("email", test_user.email)
        assert found.id == test_user.id

        with pytest.raises(ValueError, match="does not exist"):
            await user_repository.get_by_field("nickname", "x")

    @pytest.mark.asyncio
    async def test_update(self, user_repository: UserRepository, test_user: User):
        """Test updating a record."""
        updated = await user_repository.update(test_user.id, {"name": "Updated Name"})

        assert updated.name == "Updated Name"
        assert updated.id == test_user.id
        assert await user_repository.update(uuid.uuid4(), {"name": "Nobody"}) is None

    @pytest.mark.asyncio
    async def test_delete(self, user_repository: UserRepository, test_user: User):
        """Test deleting a record."""
        assert await user_repository.delete(test_user.id) is True
        assert await user_repository.get_by_id(test_user.id) is None
        assert await user_repository.delete(test_user.id) is False

    @pytest.mark.asyncio
    async def test_count_and_exists(self, user_repository: UserRepository, test_user: User, test_admin: User):
        assert await user_repository.count() == 2
        assert await user_repository.count(User.role == UserRole.ADMIN) == 1
        assert await user_repository.exists(User.email == "admin@example.com")
        assert not await user_repository.exists(User.email == "ghost@example.com")

    @pytest.mark.asyncio
    async def test_pagination(self, user_repository: UserRepository):
        for i in range(5):
            await UserFactory.create_user(user_repository, name=f"Paged {i}")

        first_page, total = await user_repository.list_users(page=1, limit=2)
        last_page, _ = await user_repository.list_users(page=3, limit=2)

        assert total == 5
        assert len(first_page) == 2
        assert len(last_page) == 1


class TestUserRepository:
    """Test UserRepository lookups."""

    @pytest.mark.asyncio
    async def test_get_by_email_case_insensitive(self, user_repository: UserRepository, test_user: User):
        found = await user_repository.get_by_email("  USER@Example.com ")
        assert found.id == test_user.id
        assert await user_repository.get_by_email("") is None

    @pytest.mark.asyncio
    async def test_find_conflicting(self, user_repository: UserRepository):
        user = await UserFactory.create_user(user_repository, email="taken@example.com", mobile="9000000001")

        assert (await user_repository.find_conflicting(email="taken@example.com")).id == user.id
        assert (await user_repository.find_conflicting(mobile="9000000001")).id == user.id
        assert await user_repository.find_conflicting(email="taken@example.com", exclude_user_id=user.id) is None
        assert await user_repository.find_conflicting(email="free@example.com", mobile="9000000002") is None

    @pytest.mark.asyncio
    async def test_get_active_admin(self, user_repository: UserRepository, test_user: User):
        assert await user_repository.get_active_admin() is None

        await UserFactory.create_user(user_repository, email="off@example.com", role=UserRole.ADMIN, is_active=False)
        assert await user_repository.get_active_admin() is None

        admin = await UserFactory.create_user(user_repository, email="on@example.com", role=UserRole.ADMIN)
        assert (await user_repository.get_active_admin()).id == admin.id

    @pytest.mark.asyncio
    async def test_list_users_by_role(
        self,
        user_repository: UserRepository,
        test_user: User,
        test_admin: User,
        test_agent_user: User
    ):
        agents, total = await user_repository.list_users(role=UserRole.AGENT)

        assert total == 1
        assert agents[0].id == test_agent_user.id

    @pytest.mark.asyncio
    async def test_favorites(
        self,
        user_repository: UserRepository,
        test_user: User,
        approved_property: Property,
        pending_property: Property
    ):
        await user_repository.add_favorite(test_user.id, approved_property.id)
        await user_repository.add_favorite(test_user.id, pending_property.id)

        assert await user_repository.is_favorite(test_user.id, approved_property.id)
        favorites = await user_repository.list_favorites(test_user.id)
        assert {p.id for p in favorites} == {approved_property.id, pending_property.id}

        assert await user_repository.remove_favorite(test_user.id, approved_property.id) is True
        assert await user_repository.remove_favorite(test_user.id, approved_property.id) is False
        assert not await user_repository.is_favorite(test_user.id, approved_property.id)


class TestPropertyRepository:
    """Test PropertyRepository filtering and aggregates."""

    @pytest.fixture
    async def catalog(self, property_repository: PropertyRepository, test_user: User):
        """Three public listings and one pending listing."""
        public = dict(approval_status=ApprovalStatus.APPROVED, is_published=True)
        cheap_flat = await PropertyFactory.create_property(
            property_repository, test_user, title="Cheap flat",
            price=Decimal("900000"), property_type=PropertyType.APARTMENT, status=PropertyStatus.FOR_RENT,
            total_area=600, bedrooms=1, city="Surat", district="Surat", **public
        )
        family_house = await PropertyFactory.create_property(
            property_repository, test_user, title="Family house",
            price=Decimal("5000000"), property_type=PropertyType.HOUSE,
            total_area=2000, bedrooms=3, city="Ahmedabad", district="Ahmedabad", village="Bopal", **public
        )
        farm = await PropertyFactory.create_property(
            property_repository, test_user, title="Farm",
            price=Decimal("2500000"), property_type=PropertyType.LAND,
            total_area=40000, district="Mehsana", village="Unjha", is_featured=True, **public
        )
        draft = await PropertyFactory.create_property(
            property_repository, test_user, title="Draft villa",
            price=Decimal("9000000"), village="Shela"
        )
        return {"cheap_flat": cheap_flat, "family_house": family_house, "farm": farm, "draft": draft}

    @pytest.mark.asyncio
    async def test_public_listing_excludes_pending(self, property_repository: PropertyRepository, catalog):
        properties, total = await property_repository.search_properties(PropertyFilters())

        assert total == 3
        assert catalog["draft"].id not in {p.id for p in properties}

        everything, total_all = await property_repository.search_properties(PropertyFilters(), public_only=False)
        assert total_all == 4

    @pytest.mark.asyncio
    async def test_approved_but_unpublished_is_public(
        self,
        property_repository: PropertyRepository,
        test_user: User
    ):
        listing = await PropertyFactory.create_property(
            property_repository, test_user, approval_status=ApprovalStatus.APPROVED, is_published=False
        )

        properties, _ = await property_repository.search_properties(PropertyFilters())
        assert [p.id for p in properties] == [listing.id]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filters, expected", [
        ({"min_price": Decimal("1000000")}, {"family_house", "farm"}),
        ({"max_price": Decimal("1000000")}, {"cheap_flat"}),
        ({"type": PropertyType.LAND}, {"farm"}),
        ({"status": PropertyStatus.FOR_RENT}, {"cheap_flat"}),
        ({"city": "ahmed"}, {"family_house"}),
        ({"district": "MEHSANA"}, {"farm"}),
        ({"village": "bop"}, {"family_house"}),
        ({"bedrooms": 3}, {"family_house"}),
        ({"min_area": 1000, "max_area": 5000}, {"family_house"}),
    ])
    async def test_filters(self, property_repository: PropertyRepository, catalog, filters, expected):
        properties, total = await property_repository.search_properties(PropertyFilters(**filters))

        assert total == len(expected)
        assert {p.id for p in properties} == {catalog[name].id for name in expected}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sort, expected", [
        ("price-asc", ["cheap_flat", "farm", "family_house"]),
        ("price-desc", ["family_house", "farm", "cheap_flat"]),
        ("area-asc", ["cheap_flat", "family_house", "farm"]),
        ("area-desc", ["farm", "family_house", "cheap_flat"]),
    ])
    async def test_sorting(self, property_repository: PropertyRepository, catalog, sort, expected):
        properties, _ = await property_repository.search_properties(PropertyFilters(), sort=sort)
        assert [p.id for p in properties] == [catalog[name].id for name in expected]

    @pytest.mark.asyncio
    async def test_pagination_total(self, property_repository: PropertyRepository, catalog):
        properties, total = await property_repository.search_properties(
            PropertyFilters(), page=2, limit=2, sort="price-asc"
        )

        assert total == 3
        assert [p.id for p in properties] == [catalog["family_house"].id]

    @pytest.mark.asyncio
    async def test_featured(self, property_repository: PropertyRepository, catalog):
        featured = await property_repository.get_featured()
        assert [p.id for p in featured] == [catalog["farm"].id]

    @pytest.mark.asyncio
    async def test_locations_from_published_listings(self, property_repository: PropertyRepository, catalog):
        locations = await property_repository.get_locations()

        assert locations["districts"] == ["Ahmedabad", "Mehsana", "Surat"]
        assert locations["villages"] == ["Bopal", "Unjha"]

    @pytest.mark.asyncio
    async def test_text_search_any_term(self, property_repository: PropertyRepository, catalog):
        results, total = await property_repository.text_search("farm surat")

        assert total == 2
        assert {p.id for p in results} == {catalog["farm"].id, catalog["cheap_flat"].id}

    @pytest.mark.asyncio
    async def test_increment_views(self, property_repository: PropertyRepository, catalog):
        listing = catalog["farm"]
        await property_repository.increment_views(listing.id)
        await property_repository.increment_views(listing.id)

        reloaded = await property_repository.reload(listing.id)
        assert reloaded.views == 2

    @pytest.mark.asyncio
    async def test_owner_listings_include_all_states(
        self,
        property_repository: PropertyRepository,
        catalog,
        test_user: User
    ):
        properties, total = await property_repository.get_by_owner(test_user.id)
        assert total == 4

    @pytest.mark.asyncio
    async def test_statistics(self, property_repository: PropertyRepository, catalog):
        stats = await property_repository.get_property_statistics()

        assert stats["total_properties"] == 4
        assert stats["published"] == 3
        assert stats["approval_status"] == {"pending": 1, "approved": 3, "rejected": 0}
