import argparse
import csv
import datetime
import io
import json
import logging
import shutil
import time

import requests

from db import AccessTokenRepository, Database, WorkoutEntryRepository
from models import WorkoutEntry, WorkoutSet


def issue_token(db_path: str, user_id: str, name: str) -> str:
    token = AccessTokenRepository(db_path).issue(user_id, name)
    print(token)
    return token


def revoke_token(db_path: str, token: str) -> None:
    if AccessTokenRepository(db_path).revoke(token):
        print("Token revoked")
    else:
        print("Token not found")


def export_history(db_path: str, user_id: str, fmt: str) -> str:
    """Return the history of ``user_id`` as JSON or CSV text."""
    entries = WorkoutEntryRepository(db_path).fetch(user_id)
    if fmt == "json":
        return json.dumps({"workouts": [e.to_dict() for e in entries]}, indent=2)
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["Date", "Exercise ID", "Exercise", "Muscle Group", "Set", "Weight", "Reps"])
    for entry in entries:
        for pos, s in enumerate(entry.sets, start=1):
            writer.writerow(
                [
                    entry.date,
                    entry.exercise_id,
                    entry.exercise_name,
                    entry.muscle_group,
                    pos,
                    s.weight,
                    s.reps,
                ]
            )
    return buf.getvalue()


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def demo_data(db_path: str, user_id: str) -> None:
    """Populate the history of ``user_id`` with demo sessions if empty."""
    repo = WorkoutEntryRepository(db_path)
    if repo.count(user_id):
        print("History already contains workouts")
        return
    start = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(days=21)
    plan = [(60.0, 8), (60.0, 10), (60.0, 12), (62.5, 8), (62.5, 10)]
    for i, (weight, reps) in enumerate(plan):
        ts = (start + datetime.timedelta(days=i * 4)).isoformat()
        sets = tuple(WorkoutSet(weight, reps, ts) for _ in range(3))
        repo.append(
            user_id, WorkoutEntry("bench-press", "Bench Press", "Chest", sets, ts)
        )
    print("Demo data inserted")


def benchmark(url: str, runs: int = 10) -> None:
    times: list[float] = []
    for _ in range(runs):
        t0 = time.time()
        requests.get(f"{url}/health", timeout=5)
        times.append(time.time() - t0)
    avg = sum(times) / len(times)
    print(f"Average /health response time over {runs} runs: {avg:.4f}s")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="FitTrack utility commands")
    parser.add_argument("--log-level", default="WARNING")
    sub = parser.add_subparsers(dest="cmd", required=True)

    tok = sub.add_parser("issue-token")
    tok.add_argument("--db", default="workout.db")
    tok.add_argument("--user", required=True)
    tok.add_argument("--name", default="default")

    rev = sub.add_parser("revoke-token")
    rev.add_argument("--db", default="workout.db")
    rev.add_argument("--token", required=True)

    exp = sub.add_parser("export")
    exp.add_argument("--db", default="workout.db")
    exp.add_argument("--user", required=True)
    exp.add_argument("--fmt", choices=["json", "csv"], default="json")
    exp.add_argument("--out", default="-")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--db", default="workout.db")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")
    rst.add_argument("--db", default="workout.db")

    vac = sub.add_parser("vacuum")
    vac.add_argument("--db", default="workout.db")

    demo = sub.add_parser("demo")
    demo.add_argument("--db", default="workout.db")
    demo.add_argument("--user", default="local")

    bench = sub.add_parser("benchmark")
    bench.add_argument("--url", default="http://localhost:8000")
    bench.add_argument("--runs", type=int, default=10)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    if args.cmd == "issue-token":
        issue_token(args.db, args.user, args.name)
    elif args.cmd == "revoke-token":
        revoke_token(args.db, args.token)
    elif args.cmd == "export":
        data = export_history(args.db, args.user, args.fmt)
        if args.out == "-":
            print(data)
        else:
            with open(args.out, "w", encoding="utf-8", newline="") as f:
                f.write(data)
    elif args.cmd == "backup":
        backup_db(args.db, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, args.db)
    elif args.cmd == "vacuum":
        Database(args.db).vacuum()
    elif args.cmd == "demo":
        demo_data(args.db, args.user)
    elif args.cmd == "benchmark":
        benchmark(args.url, args.runs)


if __name__ == "__main__":
    main()
