from db.models.activity import Activity

__all__ = ["Activity"]
