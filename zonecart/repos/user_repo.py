from sqlalchemy import select, update, or_, and_
from sqlalchemy.orm import Session

from zonecart.data.models.user import UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def list_users_by_zone_or_with_coordinates(self, zone_id: int) -> list[UserModel]:
        return list(
            self.db.execute(
                select(UserModel)
                .where(
                    or_(
                        UserModel.zone_id == zone_id,
                        and_(UserModel.latitude.is_not(None), UserModel.longitude.is_not(None)),
                    )
                )
                .order_by(UserModel.id)
            ).scalars()
        )

    def list_users_in_zone(self, zone_id: int) -> list[UserModel]:
        return list(
            self.db.execute(select(UserModel).where(UserModel.zone_id == zone_id).order_by(UserModel.id)).scalars()
        )

    def update_user_zone(self, user_id: int, zone_id: int | None, expected_zone_id: int | None) -> int:
        """Compare-and-set na zone_id, 0 jesli user zniknal albo ktos go juz zmienil."""
        if expected_zone_id is None:
            same_zone = UserModel.zone_id.is_(None)
        else:
            same_zone = UserModel.zone_id == expected_zone_id

        result = self.db.execute(
            update(UserModel).where(UserModel.id == user_id, same_zone).values(zone_id=zone_id)
        )
        return result.rowcount

    def clear_zone(self, zone_id: int) -> int:
        result = self.db.execute(
            update(UserModel).where(UserModel.zone_id == zone_id).values(zone_id=None)
        )
        return result.rowcount

    def update_user_location(self, user_id: int, location: dict, zone_id: int | None) -> int:
        result = self.db.execute(
            update(UserModel).where(UserModel.id == user_id).values(**location, zone_id=zone_id)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
