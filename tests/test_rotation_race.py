"""Concurrent refresh rotation against a file-backed SQLite database."""

import threading

import pytest

from models.db_storage import DBStorage
from models.refresh_token import RefreshToken
from services.auth import AuthService
from utils.exceptions import DatabaseQueryError, InvalidRefreshTokenError
from utils.security import TokenSigner

WORKERS = 8


@pytest.fixture
def file_storage(tmp_path):
    store = DBStorage()
    store.configure(f"sqlite:///{tmp_path / 'race.db'}", timeout=30)
    store.reload()
    yield store
    store.close()


@pytest.fixture
def race_service(file_storage):
    signer = TokenSigner("race-secret-not-for-production-0123456789abcdef")
    return AuthService(file_storage, signer)


def test_only_one_concurrent_rotation_wins(file_storage, race_service):
    token = race_service.signup("race@b.com", "password1").tokens.refresh_token
    barrier = threading.Barrier(WORKERS)
    lock = threading.Lock()
    winners, losers, unexpected = [], [], []

    def rotate():
        barrier.wait()
        try:
            result = race_service.refresh(token)
        # A writer waiting on SQLite's lock may also give up with a store error
        except (InvalidRefreshTokenError, DatabaseQueryError) as exc:
            with lock:
                losers.append(exc)
        except Exception as exc:
            with lock:
                unexpected.append(exc)
        else:
            with lock:
                winners.append(result.tokens.refresh_token)
        finally:
            file_storage.close()

    threads = [threading.Thread(target=rotate) for _ in range(WORKERS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert unexpected == []
    assert len(winners) == 1
    assert len(losers) == WORKERS - 1

    with file_storage.transaction() as session:
        # Signup record plus the single rotated one
        assert session.query(RefreshToken).count() == 2
        assert RefreshToken.find_valid(session, token) is None
        assert RefreshToken.find_valid(session, winners[0]) is not None
