from __future__ import annotations


# Part of the wire contract with previously created issues: the watermark is
# recovered by stripping this prefix, so both must change together.
TITLE_PREFIX = "[Automated] PRs inserted in VS build "

INSERTION_LABEL = "vs-insertion"


def notification_title(build_number: str) -> str:
    return f"{TITLE_PREFIX}{build_number}"


def build_number_from_title(title: str) -> str | None:
    if not title.startswith(TITLE_PREFIX):
        return None
    build_number = title[len(TITLE_PREFIX) :].strip()
    return build_number or None
