# barangay_audit/db/session.py
from barangay_audit.db.mongo import AUDIT_LOGS, COUNTERS, SITIOS, USERS, get_db
from barangay_audit.repositories.audit_repository import AuditRepository
from barangay_audit.repositories.directory_repository import DirectoryRepository


def get_audit_repository() -> AuditRepository:
    """
    FastAPI dependency that returns the Mongo audit repository
    """
    db = get_db()
    return AuditRepository(db[AUDIT_LOGS], db[COUNTERS])


def get_directory() -> DirectoryRepository:
    db = get_db()
    return DirectoryRepository(db[USERS], db[SITIOS])
