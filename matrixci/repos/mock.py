from matrixci.definitions import Repo


class Mock(Repo):
    @classmethod
    def from_env(cls, **kwargs) -> "Mock":
        """
        Save whatever is provided to kwargs
        """
        kwargs.setdefault("sha", "0" * 40)
        kwargs.setdefault("branch", "master")
        kwargs.setdefault("remote", "https://example.com/owner/repo.git")
        kwargs.setdefault("commit_message", "")
        return cls(**kwargs)
