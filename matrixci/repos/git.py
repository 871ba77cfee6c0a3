import subprocess

from matrixci.definitions import Repo


class Git(Repo):
    @classmethod
    def from_env(cls) -> "Git":
        """
        Gets repo status from the environment and git repo on disk.
        """
        remote = (
            subprocess.check_output(
                "git remote -v | grep push | head -n1 | awk '{print $2}'", shell=True
            )
            .decode()
            .strip()
        )
        branch = (
            subprocess.check_output("git rev-parse --abbrev-ref HEAD", shell=True)
            .decode()
            .strip()
        )
        sha = subprocess.check_output("git rev-parse HEAD", shell=True).decode().strip()
        message = (
            subprocess.check_output("git log -1 --pretty=%B", shell=True)
            .decode()
            .strip()
        )
        return cls(sha=sha, branch=branch, remote=remote, commit_message=message)
