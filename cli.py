#!/usr/bin/env python3
"""
CLI for the cipherkeep vault.

Commands:
  register <user>       Create an account and log in
  login <user>          Log in and save the session token
  set-master            Set the master password for the logged-in user
  add <kind> <name>     Encrypt and store a credential, text, card or file
  list                  List records (names only; nothing is decrypted)
  show <id>             Decrypt and print one record
  export <id> <path>    Decrypt a file record to disk
  delete <id>           Delete a record
  sync                  Reconcile with the server
  watch                 Sync every CIPHERKEEP_SYNC_INTERVAL seconds until interrupted
"""

import argparse
import getpass
import logging
import sys
from pathlib import Path

from client import EventLoop, HttpRemoteStore, SyncScheduler, VaultClient
from client.config import CONFIG_DIR, LOG_LEVEL, SERVER_URL, SYNC_INTERVAL_SECONDS
from records import Card, Credential, FileBlob, TextNote
from vaultcrypto import CryptoError, InvalidData
from vaultsync import TransportError

CURRENT_USER_FILE = CONFIG_DIR / "current_user"


def make_client(args: argparse.Namespace) -> VaultClient:
    return VaultClient(HttpRemoteStore(base_url=args.server), config_dir=CONFIG_DIR)


def current_user() -> str:
    if not CURRENT_USER_FILE.exists():
        print("Not logged in. Run: cli.py login <username>", file=sys.stderr)
        sys.exit(1)
    return CURRENT_USER_FILE.read_text(encoding="utf-8").strip()


def remember_user(username: str) -> None:
    CONFIG_DIR.mkdir(mode=0o700, parents=True, exist_ok=True)
    CURRENT_USER_FILE.write_text(username, encoding="utf-8")


def resumed_client(args: argparse.Namespace) -> VaultClient:
    client = make_client(args)
    if not client.resume(current_user()):
        print("Session expired. Run: cli.py login <username>", file=sys.stderr)
        sys.exit(1)
    return client


def unlocked_client(args: argparse.Namespace) -> VaultClient:
    client = resumed_client(args)
    if not client.has_master_password():
        print("No master password set. Run: cli.py set-master", file=sys.stderr)
        sys.exit(1)
    client.unlock(getpass.getpass("Master password: "))
    client.refresh()
    return client


def cmd_register(args: argparse.Namespace) -> None:
    client = make_client(args)
    owner_id = client.register(args.username, getpass.getpass("Account password: "))
    remember_user(args.username)
    print("Registered", args.username, "with id", owner_id)
    print("Set a master password next: cli.py set-master")


def cmd_login(args: argparse.Namespace) -> None:
    client = make_client(args)
    client.login(args.username, getpass.getpass("Account password: "))
    remember_user(args.username)
    print("Logged in as", args.username)


def cmd_logout(args: argparse.Namespace) -> None:
    client = resumed_client(args)
    client.logout()
    CURRENT_USER_FILE.unlink(missing_ok=True)
    print("Logged out")


def cmd_set_master(args: argparse.Namespace) -> None:
    client = resumed_client(args)
    if client.has_master_password():
        print("Warning: existing records stay encrypted under the old master password.", file=sys.stderr)
    password = getpass.getpass("New master password: ")
    if password != getpass.getpass("Repeat master password: "):
        print("Passwords do not match", file=sys.stderr)
        sys.exit(1)
    client.set_master_password(password)
    print("Master password saved")


def build_payload(args: argparse.Namespace):
    if args.kind == "credential":
        return Credential(login=input("Login: "), password=getpass.getpass("Password: "))
    if args.kind == "text":
        print("Text (end with Ctrl-D):")
        return TextNote(content=sys.stdin.read())
    if args.kind == "card":
        return Card(
            card_number=input("Card number: "),
            card_holder=input("Card holder: "),
            expiry_date=input("Expiry (MM/YY): "),
            cvv=getpass.getpass("CVV: "),
        )
    path = Path(args.file)
    if not path.is_file():
        print("Not a file:", path, file=sys.stderr)
        sys.exit(1)
    return FileBlob(file_name=path.name, data=path.read_bytes())


def cmd_add(args: argparse.Namespace) -> None:
    if args.kind == "file" and not args.file:
        print("--file is required for file records", file=sys.stderr)
        sys.exit(1)
    client = unlocked_client(args)
    record = client.save_secret(args.name, build_payload(args), metadata=args.metadata or "")
    print("Saved record", record.id)


def cmd_list(args: argparse.Namespace) -> None:
    client = resumed_client(args)
    records = client.refresh()
    print("Records:", len(records))
    for r in records:
        print(f" - {r.id:>6}  {r.kind.value:<15} {r.name}  (updated {r.updated_at:%Y-%m-%d %H:%M})")


def cmd_show(args: argparse.Namespace) -> None:
    client = unlocked_client(args)
    payload = client.reveal(args.id)
    if isinstance(payload, Credential):
        print("Login:   ", payload.login)
        print("Password:", payload.password)
    elif isinstance(payload, TextNote):
        print(payload.content)
    elif isinstance(payload, Card):
        print("Number: ", payload.card_number)
        print("Holder: ", payload.card_holder)
        print("Expiry: ", payload.expiry_date)
        print("CVV:    ", payload.cvv)
    elif isinstance(payload, FileBlob):
        print(f"File {payload.file_name} ({len(payload.data)} bytes); use export to save it")


def cmd_export(args: argparse.Namespace) -> None:
    client = unlocked_client(args)
    target = client.export_file(args.id, args.path)
    print("Written", target)


def cmd_delete(args: argparse.Namespace) -> None:
    client = resumed_client(args)
    client.delete_secret(args.id)
    print("Deleted record", args.id)


def print_result(result) -> None:
    print("Synced:", result.counts())
    for entry in result.failures:
        print(f" ! {entry.record.name}: {entry.error}", file=sys.stderr)


def cmd_sync(args: argparse.Namespace) -> None:
    client = resumed_client(args)
    print_result(client.sync())


def cmd_watch(args: argparse.Namespace) -> None:
    client = resumed_client(args)
    loop = EventLoop()
    scheduler = SyncScheduler(client, loop, interval=args.interval, on_result=print_result)
    scheduler.trigger()
    scheduler.start()
    print(f"Syncing every {args.interval:g}s; Ctrl-C to stop")
    try:
        loop.run_forever()
    except KeyboardInterrupt:
        pass
    finally:
        loop.stop()


def main() -> None:
    parser = argparse.ArgumentParser(description="Zero-knowledge secret vault client")
    parser.add_argument("--server", default=SERVER_URL, help="Server base URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)
    p_register = sub.add_parser("register", help="Create an account")
    p_register.add_argument("username")
    p_login = sub.add_parser("login", help="Log in")
    p_login.add_argument("username")
    sub.add_parser("logout", help="Forget the session token")
    sub.add_parser("set-master", help="Set the master password")
    p_add = sub.add_parser("add", help="Encrypt and store a secret")
    p_add.add_argument("kind", choices=["credential", "text", "card", "file"])
    p_add.add_argument("name")
    p_add.add_argument("--file", help="Path of the file to store (kind=file)")
    p_add.add_argument("--metadata", help="Free-form metadata stored in clear")
    sub.add_parser("list", help="List records")
    p_show = sub.add_parser("show", help="Decrypt and print a record")
    p_show.add_argument("id", type=int)
    p_export = sub.add_parser("export", help="Decrypt a file record to disk")
    p_export.add_argument("id", type=int)
    p_export.add_argument("path")
    p_delete = sub.add_parser("delete", help="Delete a record")
    p_delete.add_argument("id", type=int)
    sub.add_parser("sync", help="Reconcile with the server")
    p_watch = sub.add_parser("watch", help="Sync periodically")
    p_watch.add_argument("--interval", type=float, default=SYNC_INTERVAL_SECONDS)
    args = parser.parse_args()

    logging.basicConfig(level="DEBUG" if args.verbose else LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

    commands = {
        "register": cmd_register,
        "login": cmd_login,
        "logout": cmd_logout,
        "set-master": cmd_set_master,
        "add": cmd_add,
        "list": cmd_list,
        "show": cmd_show,
        "export": cmd_export,
        "delete": cmd_delete,
        "sync": cmd_sync,
        "watch": cmd_watch,
    }
    try:
        commands[args.command](args)
    except InvalidData:
        print("Wrong master password or corrupted record", file=sys.stderr)
        sys.exit(1)
    except CryptoError as e:
        print("Crypto error:", e, file=sys.stderr)
        sys.exit(1)
    except TransportError as e:
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print("Error:", e, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
