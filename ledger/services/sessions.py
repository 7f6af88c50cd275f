import logging
import secrets

from ledger.repositories.base import LedgerRepository


logger = logging.getLogger(__name__)

# session ids are handed out as positive 32-bit integers
MAX_SESSION_ID = 2**31 - 1


class SessionService:
    def __init__(self, repo: LedgerRepository) -> None:
        self.repo = repo

    def create_session(self) -> dict:
        while True:
            session_id = secrets.randbelow(MAX_SESSION_ID) + 1
            if self.repo.create_session(str(session_id)):
                break
        logger.info("created session %d", session_id)
        return {"session_id": session_id}

    def is_valid(self, session_id: str | None) -> bool:
        if not session_id:
            return False
        return self.repo.session_exists(session_id)
