"""Auth-gated routing decisions."""

from things_together.domain.session import SessionSnapshot

HOME_PATH = "/"
DONE_PATH = "/done"
ADD_THING_PATH = "/add-thing"
SIGN_IN_PATH = "/signin"


def planned_detail_path(thing_id: str) -> str:
    return f"/things/{thing_id}"


def done_detail_path(thing_id: str) -> str:
    return f"/done/{thing_id}"


def resolve_redirect(path: str, snapshot: SessionSnapshot) -> str | None:
    """Return where a request for ``path`` must go instead, if anywhere.

    Nothing is decided while the session is still loading.
    """
    if snapshot.loading:
        return None
    if snapshot.user is None and path != SIGN_IN_PATH:
        return SIGN_IN_PATH
    if snapshot.user is not None and path == SIGN_IN_PATH:
        return HOME_PATH
    return None
