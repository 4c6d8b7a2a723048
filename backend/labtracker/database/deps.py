from labtracker.database.session import LabDatabase, get_database


def get_db() -> LabDatabase:
    return get_database()
