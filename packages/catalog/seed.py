"""Reference data for a fresh catalog.

Seeding goes through the plain commit, so it leaves no audit records.
"""


from packages.structured_logging import get_logger
from packages.unit_of_work import UnitOfWork

from .entities import Category, User

logger = get_logger(__name__)

SEED_CATEGORIES = (
    ("Electronics", "Phones, laptops and accessories"),
    ("Books", "Printed and digital books"),
    ("Home", "Furniture and kitchen"),
)

SEED_ADMIN = ("admin", "admin@example.com")


def seed(uow: UnitOfWork) -> int:
    """Insert reference categories and the admin user.

    Args:
        uow: Unit of work to seed (committed with save_changes)

    Returns:
        Number of rows inserted
    """
    for index, (name, description) in enumerate(SEED_CATEGORIES):
        uow.add(Category(name=name, description=description, sort_order=index))

    user_name, email = SEED_ADMIN
    uow.add(User(user_name=user_name, email=email, is_admin=True))

    rows = uow.save_changes()
    logger.info("catalog_seeded", rows=rows)
    return rows
