import threading

import pytest

from kidvid.errors import NoCredentialsConfigured
from kidvid.utils.credentials import CredentialPool


def test_empty_pool_fails_at_construction():
    with pytest.raises(NoCredentialsConfigured):
        CredentialPool([])


def test_current_and_advance_wrap():
    pool = CredentialPool(["a", "b", "c"])
    seen = []
    for _ in range(4):
        seen.append(pool.current())
        pool.advance()
    assert seen == ["a", "b", "c", "a"]
    assert pool.cursor == 4


def test_credentials_are_immutable_snapshot():
    keys = ["a", "b"]
    pool = CredentialPool(keys)
    keys.append("c")
    assert len(pool) == 2
    assert pool.credentials == ("a", "b")


def test_concurrent_advances_are_not_lost():
    pool = CredentialPool(["a", "b", "c"])

    def spin():
        for _ in range(500):
            pool.advance()

    threads = [threading.Thread(target=spin) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert pool.cursor == 4000
    assert pool.current() == ["a", "b", "c"][4000 % 3]
