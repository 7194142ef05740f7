from .mongo import (
    db,
    users_collection,
    communities_collection,
    notifications_collection,
    posts_collection,
)
