import pendulum

from matrixci.definitions import Reporter, Report, JobResult, Status, DeployOutcome


def __get_time_format__(result: JobResult) -> str:
    time = " --:--"
    if result is not None and result.started_at is not None:
        if result.finished_at is not None:
            s = result.finished_at - result.started_at
        else:
            s = pendulum.now() - result.started_at
        s = int(s.total_seconds())
        m = s // 60
        time = f"{m:>3}:{s % 60:>02}"
    return time


class Text(Reporter):
    title = "matrixci"

    def render(self, report: Report, sha: str = None) -> str:
        """
        Returns a human readable report for a given pipeline run.
        """
        max_name = max([len(entry.job_name) for entry in report.entries] + [0])
        max_name = max(max_name, len(self.title))
        name = (self.title + " " * max_name)[:max_name]
        sha = f" [sha {sha[:10]}]" if sha else ""
        graph = [
            "",
            f"╔ {report.status.get_dot()} : {name}{sha}",
            "┃",
        ]
        results = {result.job_name: result for result in report.results}
        for entry in report.entries:
            job_name = (entry.job_name + " " * max_name)[:max_name]
            status = f"{entry.status.value:<9}"
            line = (
                f"┃ {entry.status.get_dot()} : {job_name} {status}"
                f" {__get_time_format__(results.get(entry.job_name))}"
            )
            if entry.deploy != DeployOutcome.NOT_TRIGGERED:
                line += f" deploy {entry.deploy.get_dot()} {entry.deploy.value}"
            graph.append(line)
        if report.error:
            graph.append(f"┃ 🔴 : {report.error}")
        closer = "┗" + ("━" * (len(" O : ") + max_name + 1 + 9 + 1 + 6)) + "┛"
        graph += [closer, f"Pipeline {report.status.value}"]
        failed = [
            result
            for result in report.results
            if result.status == Status.FAILURE and result.outcomes
        ]
        for result in report.results:
            if result.error is not None:
                graph += ["", f"--- {result.job_name}: crashed", result.error]
        for result in failed:
            last = result.outcomes[-1]
            graph += ["", f"--- {result.job_name}: `{last.command}` exit {last.exit_code}"]
            graph += list(last.output)
        for result in report.results:
            if result.deploy == DeployOutcome.FAILURE:
                graph += ["", f"--- {result.job_name}: deploy failed"]
                graph += list(result.deploy_output)
        return "\n".join(graph)
