"""
Command line access to the cat and user services.

State only outlives a single invocation when CATKEEPER_DATABASE_URL points
at a database; without it each run starts from an empty in-memory store.

    catkeeper cats create Tom --tail-length 5
    catkeeper users create Jerry --cat Tom
    catkeeper users get Jerry
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from pydantic import BaseModel, ValidationError

from catkeeper.config import get_settings
from catkeeper.dependencies import get_cat_service, get_user_service
from catkeeper.errors import CatKeeperError
from catkeeper.schemas import CreateCatDTO, CreateUserDTO

logger = logging.getLogger(__name__)


def _dump(result) -> str:
    if isinstance(result, BaseModel):
        payload = result.model_dump(by_alias=True)
    elif isinstance(result, list):
        payload = [item.model_dump(by_alias=True) for item in result]
    else:
        payload = {"status": "ok"}
    return json.dumps(payload, indent=2)


def _run_cats(args) -> object:
    service = get_cat_service()
    if args.action == "list":
        return service.find_all()
    if args.action == "get":
        if len(args.names) == 1:
            return service.find_by_name(args.names[0])
        return service.find_by_names(args.names)
    if args.action == "create":
        dto = CreateCatDTO.model_validate(
            {"name": args.name, "tailLength": args.tail_length}
        )
        return service.create(dto)
    if args.action == "update":
        dto = CreateCatDTO.model_validate(
            {"name": args.new_name or args.name, "tailLength": args.tail_length}
        )
        return service.update_by_name(args.name, dto)
    if args.action == "remove":
        return service.remove_by_name(args.name)
    raise ValueError(f"Unknown cats action: {args.action}")


def _run_users(args) -> object:
    service = get_user_service()
    if args.action == "list":
        return service.find_all()
    if args.action == "get":
        if len(args.names) == 1:
            return service.find_by_name(args.names[0])
        return service.find_by_names(args.names)
    if args.action == "create":
        dto = CreateUserDTO.model_validate({"name": args.name, "catNames": args.cats})
        return service.create(dto)
    if args.action == "update":
        dto = CreateUserDTO.model_validate(
            {"name": args.new_name or args.name, "catNames": args.cats}
        )
        return service.update_by_name(args.name, dto)
    if args.action == "remove":
        return service.remove_by_name(args.name)
    raise ValueError(f"Unknown users action: {args.action}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="catkeeper", description="Manage cats and the users who own them."
    )
    entities = parser.add_subparsers(dest="entity", required=True)

    cats = entities.add_parser("cats", help="Manage cats.")
    cat_actions = cats.add_subparsers(dest="action", required=True)
    cat_actions.add_parser("list", help="List all cats.")
    get_cat = cat_actions.add_parser("get", help="Show one or more cats by name.")
    get_cat.add_argument("names", nargs="+")
    create_cat = cat_actions.add_parser("create", help="Create a cat.")
    create_cat.add_argument("name")
    create_cat.add_argument("--tail-length", required=True)
    update_cat = cat_actions.add_parser("update", help="Replace a cat by name.")
    update_cat.add_argument("name")
    update_cat.add_argument("--new-name", default=None, help="Rename the cat.")
    update_cat.add_argument("--tail-length", required=True)
    remove_cat = cat_actions.add_parser("remove", help="Remove a cat by name.")
    remove_cat.add_argument("name")
    cats.set_defaults(handler=_run_cats)

    users = entities.add_parser("users", help="Manage users.")
    user_actions = users.add_subparsers(dest="action", required=True)
    user_actions.add_parser("list", help="List all users with their cats.")
    get_user = user_actions.add_parser("get", help="Show one or more users by name.")
    get_user.add_argument("names", nargs="+")
    create_user = user_actions.add_parser("create", help="Create a user.")
    create_user.add_argument("name")
    create_user.add_argument(
        "--cat", dest="cats", action="append", default=[], help="Owned cat name."
    )
    update_user = user_actions.add_parser("update", help="Replace a user by name.")
    update_user.add_argument("name")
    update_user.add_argument("--new-name", default=None, help="Rename the user.")
    update_user.add_argument(
        "--cat", dest="cats", action="append", default=[], help="Owned cat name."
    )
    remove_user = user_actions.add_parser("remove", help="Remove a user by name.")
    remove_user.add_argument("name")
    users.set_defaults(handler=_run_users)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    args = build_parser().parse_args(argv)
    logger.debug("Running %s %s", args.entity, args.action)
    try:
        result = args.handler(args)
    except ValidationError as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 1
    except CatKeeperError as exc:
        print(exc.message, file=sys.stderr)
        return 1
    print(_dump(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
