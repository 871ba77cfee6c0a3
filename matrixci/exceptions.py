class BadConfig(Exception):
    """
    Raised when a given configuration for a pipeline will cause errors /
    unexpected behaviour if it is allowed to run.
    """


class ConfigError(BadConfig):
    """
    A configuration that cannot be expanded into a valid set of jobs.
    Nothing is run when this is raised.
    """


class EmptyScripts(ConfigError):
    "A job would end up with no scripts to run"

    def __init__(self, job_name: str):
        super().__init__(f"Job has no scripts to run: {job_name}")
        self.job_name = job_name


class DuplicateJobName(ConfigError):
    "Two jobs in the matrix resolve to the same name"

    def __init__(self, job_name: str):
        super().__init__(f"Job name taken: {job_name}")
        self.job_name = job_name


class TriggerFailed(Exception):
    "Failure to start a command in the execution environment"
