"""Per-run sync plan computed from the two snapshots."""

from __future__ import annotations

from typing import Sequence

from .models import Contact, LocalRecord, PlannedAction, SyncAction


def build_plan(
    remote: Sequence[Contact], local: Sequence[LocalRecord]
) -> list[PlannedAction]:
    """Match remote contacts and local records by uid.

    The plan lists, in remote-snapshot order, one ``UPDATE_LOCAL`` or
    ``CREATE_LOCAL`` per remote contact, followed by one ``CREATE_REMOTE``
    per local record (in local-snapshot order) whose uid is absent from
    the remote snapshot.

    When several local records share a uid, the first one is the one
    updated; every record whose uid is missing remotely gets its own
    ``CREATE_REMOTE`` entry.
    """
    by_uid: dict[str, LocalRecord] = {}
    for record in local:
        by_uid.setdefault(record.contact.uid, record)

    plan: list[PlannedAction] = []
    for contact in remote:
        record = by_uid.get(contact.uid)
        if record is not None:
            plan.append(
                PlannedAction(
                    action=SyncAction.UPDATE_LOCAL,
                    contact=contact,
                    record=record,
                )
            )
        else:
            plan.append(
                PlannedAction(action=SyncAction.CREATE_LOCAL, contact=contact)
            )

    remote_uids = {contact.uid for contact in remote}
    for record in local:
        if record.contact.uid not in remote_uids:
            plan.append(
                PlannedAction(
                    action=SyncAction.CREATE_REMOTE,
                    contact=record.contact,
                    record=record,
                )
            )

    return plan
