from repomigrator.batch.precheck import should_skip
from repomigrator.git import BranchListing, GitClient


class _ListingClient(GitClient):
    def __init__(self, listing: BranchListing) -> None:
        super().__init__()
        self.listing = listing
        self.urls: list[str] = []

    def list_remote_heads(self, url: str) -> BranchListing:
        self.urls.append(url)
        return self.listing


def test_skip_when_remote_has_1x() -> None:
    client = _ListingClient(BranchListing(ok=True, branches=["main", "1.x"]))
    assert should_skip("https://github.com/o/r", client) is True
    assert client.urls == ["https://github.com/o/r"]


def test_skip_when_remote_has_migration_branch() -> None:
    client = _ListingClient(BranchListing(ok=True, branches=["0.x", "1.x-claude"]))
    assert should_skip("https://github.com/o/r", client) is True


def test_no_skip_for_unmigrated_remote() -> None:
    client = _ListingClient(BranchListing(ok=True, branches=["main", "0.x", "1.x-other"]))
    assert should_skip("https://github.com/o/r", client) is False


def test_listing_failure_never_skips() -> None:
    client = _ListingClient(BranchListing(ok=False, error="could not resolve host"))
    assert should_skip("https://github.com/o/r", client) is False
