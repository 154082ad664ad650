"""Worker task registry

Each task receives a GraphClient and its extra argv and reports through
worker.ipc. Returning normally means success was already emitted.
"""

from typing import Callable, Dict, List, Optional, Sequence
from urllib.parse import quote

from . import ipc
from .graph import GraphClient, GraphError

TaskFunc = Callable[[GraphClient, Sequence[str]], None]

TASKS: Dict[str, TaskFunc] = {}

# Delegated scopes that expose mail, files, the directory or role assignment
HIGH_RISK_SCOPES = frozenset([
    "Mail.Read", "Mail.ReadWrite", "Mail.Send", "MailboxSettings.ReadWrite",
    "Files.Read.All", "Files.ReadWrite.All", "Sites.ReadWrite.All", "Sites.Manage.All",
    "Directory.ReadWrite.All", "Directory.AccessAsUser.All",
    "User.ReadWrite.All", "Group.ReadWrite.All",
    "RoleManagement.ReadWrite.Directory", "AppRoleAssignment.ReadWrite.All",
    "Application.ReadWrite.All", "Policy.ReadWrite.ConditionalAccess",
])


def task(name: str) -> Callable[[TaskFunc], TaskFunc]:
    def register(func: TaskFunc) -> TaskFunc:
        TASKS[name] = func
        return func
    return register


def option_value(args: Sequence[str], flag: str) -> Optional[str]:
    """Value following ``flag`` in args, or None"""
    try:
        index = list(args).index(flag)
    except ValueError:
        return None
    if index + 1 >= len(args):
        return None
    return args[index + 1] or None


@task("iam:test")
def connectivity_test(graph: GraphClient, args: Sequence[str]) -> None:
    ipc.progress("Calling Microsoft Graph /me...", 50)
    me = graph.get("/me", params={"$select": "id,displayName,userPrincipalName,mail"})
    ipc.success({
        "table": {
            "headers": ["Field", "Value"],
            "rows": [
                ["Display Name", me.get("displayName") or ""],
                ["User Principal Name", me.get("userPrincipalName") or ""],
                ["Mail", me.get("mail") or ""],
                ["Object ID", me.get("id") or ""],
            ],
        },
        "message": "✅ Microsoft Graph connectivity OK",
    })


@task("iam:offboard")
def offboard_user(graph: GraphClient, args: Sequence[str]) -> None:
    email = option_value(args, "--user")
    if not email:
        ipc.error("Missing required argument: --user <email>")

    ipc.progress(f"Initializing offboarding for {email}...", 0)
    ipc.progress("Searching for user in Entra ID...", 10)
    try:
        user = graph.get(f"/users/{quote(email)}")
    except GraphError as e:
        if e.status_code == 404:
            ipc.error(f"User {email} not found.")
        raise

    ipc.progress("User found. Preparing resources...", 20)
    ipc.success({
        "action": "Offboard Initialization",
        "target": user.get("displayName"),
        "id": user.get("id"),
        "status": "Found - Ready for processing",
    })


def risky_scopes(scope: str) -> List[str]:
    return sorted(s for s in scope.split() if s in HIGH_RISK_SCOPES)


@task("sec:shadow-it")
def shadow_it(graph: GraphClient, args: Sequence[str]) -> None:
    dry_run = option_value(args, "--dry-run") != "false"

    ipc.progress("Listing delegated permission grants...", 10)
    grants = list(graph.get_paged("/oauth2PermissionGrants"))

    ipc.progress(f"Analyzing {len(grants)} grants...", 40)
    flagged = []
    app_names: Dict[str, str] = {}
    for grant in grants:
        scopes = risky_scopes(grant.get("scope") or "")
        if not scopes:
            continue
        client_id = grant.get("clientId") or ""
        if client_id not in app_names:
            try:
                app = graph.get(f"/servicePrincipals/{client_id}", params={"$select": "displayName"})
                app_names[client_id] = app.get("displayName") or client_id
            except GraphError:
                app_names[client_id] = client_id
        flagged.append((grant, scopes))

    if not flagged:
        ipc.success({"message": "✅ No risky Shadow IT detected. Tenant is clean!"})
        return

    rows = [
        [
            app_names[grant.get("clientId") or ""],
            grant.get("id") or "",
            "All users" if grant.get("consentType") == "AllPrincipals" else "Single user",
            " ".join(scopes),
        ]
        for grant, scopes in flagged
    ]
    headers = ["Application", "Grant ID", "Consent", "Risky Scopes"]

    if dry_run:
        ipc.progress("Dry run: no grants revoked", 100)
        ipc.success({
            "table": {"headers": headers, "rows": rows},
            "message": f"⚠️ {len(flagged)} risky grants found (dry run)",
        })
        return

    ipc.progress("Remediating (Revoking Grants)...", 95)
    revoked = 0
    for grant, _ in flagged:
        grant_id = grant.get("id")
        if not grant_id:
            ipc.progress("Skipping grant without an id")
            continue
        try:
            graph.delete(f"/oauth2PermissionGrants/{grant_id}")
            revoked += 1
        except GraphError as e:
            ipc.progress(f"Failed to revoke grant {grant_id}: {e}")

    ipc.success({
        "table": {"headers": headers, "rows": rows},
        "message": f"🛡️ Revoked {revoked} of {len(flagged)} risky grants",
    })
