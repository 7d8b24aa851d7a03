import click
import httpx

DEFAULT_URL = "http://127.0.0.1:8765"


@click.group()
@click.option("--url", envvar="AGENTDECK_URL", default=DEFAULT_URL, show_default=True, help="Supervisor URL.")
@click.pass_context
def main(ctx: click.Context, url: str) -> None:
    """agentdeck - supervise coding agents in tmux windows and git worktrees."""
    ctx.obj = url


@main.command()
@click.option("--host", default=None, help="Bind host (default: from AGENTDECK_HOST or 127.0.0.1).")
@click.option("--port", default=None, type=int, help="Bind port (default: from AGENTDECK_PORT or 8765).")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the supervisor (poller + HTTP API)."""
    import uvicorn

    from agentdeck.supervisor.settings import get_settings

    settings = get_settings()

    uvicorn.run(
        "agentdeck.supervisor.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",  # uvicorn's own logging is intercepted by loguru
    )


# ---------------------------------------------------------------------------
# Client commands (talk to a running supervisor)
# ---------------------------------------------------------------------------


def _request(url: str, method: str, path: str, **kwargs: object) -> httpx.Response:
    try:
        with httpx.Client(base_url=url, timeout=120) as client:
            resp = client.request(method, f"/api{path}", **kwargs)
    except httpx.HTTPError as exc:
        raise click.ClickException(f"Cannot reach supervisor at {url}: {exc}") from None
    if resp.is_error:
        try:
            detail = resp.json().get("detail", resp.text)
        except ValueError:
            detail = resp.text
        raise click.ClickException(f"{resp.status_code}: {detail}")
    return resp


def _format_workspace(ws: dict) -> str:
    slot = str(ws["slot_position"]) if ws["has_slot"] else "-"
    extras = [x for x in (ws.get("branch_name"), ws.get("external_ref")) if x]
    suffix = f"  ({', '.join(extras)})" if extras else ""
    return f"{slot:>4}  {ws['status']:<8} {ws['name']}{suffix}"


@main.command("ls")
@click.pass_obj
def list_workspaces(url: str) -> None:
    """List workspaces and their (approximate) status."""
    workspaces = _request(url, "GET", "/workspaces/list").json()
    if not workspaces:
        click.echo("No workspaces.")
        return
    click.echo(f"{'SLOT':>4}  {'STATUS':<8} NAME")
    for ws in workspaces:
        click.echo(_format_workspace(ws))


@main.command()
@click.argument("name")
@click.option("--dir", "directory", type=click.Path(file_okay=False), default=None, help="Working directory.")
@click.option("--worktree", is_flag=True, default=False, help="Run in a dedicated git worktree.")
@click.option("--base", "base_branch", default=None, help="Base branch for the worktree.")
@click.option("--prompt", default=None, help="Initial prompt for the agent.")
@click.pass_obj
def launch(
    url: str, name: str, directory: str | None, worktree: bool, base_branch: str | None, prompt: str | None
) -> None:
    """Launch a new agent workspace."""
    body = {"name": name, "directory": directory, "worktree": worktree, "base_branch": base_branch, "prompt": prompt}
    ws = _request(url, "POST", "/workspaces/launch", json=body).json()
    click.echo(f"Launched {ws['name']} in {ws['workspace_dir']}")


@main.command()
@click.argument("name")
@click.option("--remove-worktree", is_flag=True, default=False, help="Also delete the workspace's worktree.")
@click.pass_obj
def kill(url: str, name: str, remove_worktree: bool) -> None:
    """Kill a workspace's agent and close its slot."""
    _request(url, "POST", f"/workspaces/{name}/kill", json={"remove_worktree": remove_worktree})
    click.echo(f"Killed {name}")


@main.command()
@click.argument("name")
@click.pass_obj
def switch(url: str, name: str) -> None:
    """Select a workspace's slot."""
    _request(url, "POST", f"/workspaces/{name}/switch")


@main.command()
@click.argument("name")
@click.option("--title", default=None)
@click.option("--body", default=None)
@click.pass_obj
def pr(url: str, name: str, title: str | None, body: str | None) -> None:
    """Push a workspace branch and open a pull request."""
    created = _request(url, "POST", f"/workspaces/{name}/pr", json={"title": title, "body": body}).json()
    click.echo(created["url"])


@main.command()
@click.option("--launch", "number", type=int, default=None, help="Launch a workspace for this issue.")
@click.pass_obj
def issues(url: str, number: int | None) -> None:
    """List open issues, or launch a workspace for one."""
    if number is not None:
        ws = _request(url, "POST", f"/tracker/issues/{number}/launch").json()
        click.echo(f"Launched {ws['name']} in {ws['workspace_dir']}")
        return
    for issue in _request(url, "GET", "/tracker/issues").json():
        click.echo(f"#{issue['number']:<6} {issue['title']}")


@main.command()
@click.option("--launch", "number", type=int, default=None, help="Launch a workspace for this pull request.")
@click.pass_obj
def prs(url: str, number: int | None) -> None:
    """List open pull requests, or launch a workspace for one."""
    if number is not None:
        ws = _request(url, "POST", f"/tracker/prs/{number}/launch").json()
        click.echo(f"Launched {ws['name']} in {ws['workspace_dir']}")
        return
    for item in _request(url, "GET", "/tracker/prs").json():
        click.echo(f"#{item['number']:<6} {item['title']}  [{item['headRefName']}]")


@main.command()
@click.option("--project", default=None, help="Only sessions of this project path.")
@click.option("--limit", default=20, show_default=True)
@click.pass_obj
def history(url: str, project: str | None, limit: int) -> None:
    """List past agent sessions."""
    params: dict[str, str | int] = {"limit": limit}
    if project:
        params["project"] = project
    for s in _request(url, "GET", "/history/list", params=params).json():
        prompt = (s.get("firstPrompt") or "").replace("\n", " ")[:60]
        click.echo(f"{s['sessionId'][:8]}  {s.get('modified') or '':<32} {s.get('gitBranch') or '-':<20} {prompt}")


@main.command()
@click.argument("session_id")
@click.pass_obj
def resume(url: str, session_id: str) -> None:
    """Resume a past agent session in a new workspace."""
    ws = _request(url, "POST", f"/history/{session_id}/resume").json()
    click.echo(f"Resumed {session_id} as {ws['name']}")


if __name__ == "__main__":
    main()
