#!/usr/bin/env python
"""Print a signed operator link for the given operator id.

    python -m formdesk.issue_operator_link alice
"""
import sys

from formdesk.app.core.config import settings
from formdesk.app.services.links import operator_token
from formdesk.db import Base
from formdesk.db.session import engine


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("usage: python -m formdesk.issue_operator_link <operator_id>")
        return 2
    Base.metadata.create_all(bind=engine)
    operator_id = argv[0]
    token = operator_token(operator_id)
    print(f"Operator:   {operator_id}")
    print(f"Valid for:  {settings.OPERATOR_LINK_TTL} s")
    print(f"Forms API:  {settings.BACKEND_URL.rstrip('/')}/api/forms?t={token}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
