from __future__ import annotations

import argparse
import json
import sys

from .docker_ops import DockerInspector
from .etcd import EtcdError, EtcdStore, KeyNotFound
from .logs import setup_logging
from .models import Entry
from .naming import InvalidContainerId, app_domains, entry_path, etcd_keys
from .reconciler import Reconciler, Registrar
from .settings import settings


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _registrar() -> Registrar:
    return Registrar(Reconciler(DockerInspector(), EtcdStore.from_settings()))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Register docker containers in etcd for SkyDNS")
    p.add_argument("--log-level", default=None, help="Override SWTCH_LOG_LEVEL")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("watch", help="Follow docker events and keep etcd in sync")

    s_sync = sub.add_parser("sync", help="Reconcile the given containers once")
    s_sync.add_argument("container_ids", nargs="+")

    s_show = sub.add_parser("show", help="Show the stored entry of a container")
    s_show.add_argument("container_id")

    s_serve = sub.add_parser("serve", help="Run the status API together with the watcher")
    s_serve.add_argument("--host", default=settings.api_host)
    s_serve.add_argument("--port", type=int, default=settings.api_port)

    s_dom = sub.add_parser("domains", help="Print the domains and keys derived for a container")
    s_dom.add_argument("container_id")
    s_dom.add_argument("image")
    s_dom.add_argument("name")

    args = p.parse_args(argv)
    setup_logging(args.log_level)

    if args.cmd == "domains":
        domains = app_domains(args.container_id, args.image, args.name)
        _print({"domains": domains, "keys": etcd_keys(domains)})
        return 0

    if args.cmd == "show":
        store = EtcdStore.from_settings()
        try:
            entry = Entry.loads(store.get(entry_path(args.container_id)))
        except KeyNotFound:
            print(f"No entry for {args.container_id}", file=sys.stderr)
            return 1
        except EtcdError as e:
            print(e, file=sys.stderr)
            return 1
        finally:
            store.close()
        _print(entry.model_dump(by_alias=True))
        return 0

    if args.cmd == "sync":
        registrar = _registrar()
        results = {}
        for container_id in args.container_ids:
            try:
                results[container_id] = registrar.reconcile_one(container_id) or "skipped"
            except InvalidContainerId as e:
                print(e, file=sys.stderr)
                return 2
            except Exception as e:
                registrar.fail(e)
                return 1
        _print(results)
        return 0

    if args.cmd == "watch":
        registrar = _registrar()
        try:
            registrar.run()
        except KeyboardInterrupt:
            return 0
        except Exception as e:
            registrar.fail(e)
            return 1
        return 0

    if args.cmd == "serve":
        import uvicorn

        uvicorn.run("main:app", host=args.host, port=args.port)
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
