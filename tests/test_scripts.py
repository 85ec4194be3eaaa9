from sqlalchemy import func, select

from growshare.models.user import User
from scripts.create_admin import grant_admin


async def test_grant_admin_creates_missing_user(db):
    user = await grant_admin(db, "root@example.com")
    assert user.roles == ["ADMIN"]
    assert user.full_name == "GrowShare Admin"


async def test_grant_admin_promotes_existing_user(db, renter):
    user = await grant_admin(db, renter.email)
    await grant_admin(db, renter.email)

    assert user.id == renter.id
    assert user.roles == ["RENTER", "ADMIN"]
    assert await db.scalar(select(func.count(User.id))) == 1
