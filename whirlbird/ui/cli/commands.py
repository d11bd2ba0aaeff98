from __future__ import annotations

import random
import time
from pathlib import Path

from whirlbird.config.loader import load_settings
from whirlbird.core.doctor import run_doctor
from whirlbird.core.results import SimulationReport, load_report, save_report
from whirlbird.game.session import FileBestCache


def cmd_serve(args):
    import uvicorn

    settings = load_settings(store_backend=args.store)
    from web.server import create_app

    app = create_app(settings=settings)
    uvicorn.run(app, host=args.host or settings.server_host, port=args.port or settings.server_port)


def cmd_simulate(args):
    from simulator import simulate, summarize_runs

    settings = load_settings(api_url=args.api_url)
    best_cache = FileBestCache(settings.paths.best_score_file)
    reporter = None
    if args.report:
        from whirlbird.game.reporting import HttpScoreReporter

        reporter = HttpScoreReporter(settings.api_url, post_id=args.post, username=args.user)
        print(f"[simulate] Reporting scores to {settings.api_url} as {args.user or 'anonymous'}")

    seeds = [args.seed] if args.seed is not None else random.sample(range(100_000), args.runs)
    start = time.time()
    runs = []
    for i, seed in enumerate(seeds):
        run = simulate(seed, seconds=args.seconds, reporter=reporter, best_cache=best_cache)
        runs.append(run)
        print(f"[simulate] {i + 1}/{len(seeds)} seed={seed} score={run['score']} "
              f"alive={run['alive_time']:.1f}s best={run['best']}")
    summary = summarize_runs(runs)
    print("\n" + "=" * 60)
    print("  WHIRLBIRD SIMULATION — RESULTS")
    print("=" * 60)
    for key, value in summary.items():
        print(f"  {key}: {value}")
    print(f"Elapsed: {time.time() - start:.1f}s")

    if args.out or args.save:
        out = Path(args.out or settings.paths.sim_results)
        if out.exists():
            try:
                previous = load_report(out)
                print(f"[simulate] Previous avg_score={previous.summary.get('avg_score')} "
                      f"over {previous.summary.get('runs')} runs")
            except (ValueError, KeyError) as exc:
                print(f"[simulate] Ignoring unreadable previous report: {exc}")
        path = save_report(out, SimulationReport.from_runs(summary, runs))
        print(f"[simulate] Saved results to {path}")


def cmd_leaderboard(args):
    from whirlbird.api.service import LEADERBOARD_KEY
    from whirlbird.storage.registry import load_store

    settings = load_settings(store_backend=args.store)
    store = load_store(settings)
    size = args.size or settings.api.leaderboard_size
    entries = store.z_range(LEADERBOARD_KEY, 0, size - 1, reverse=True)
    if not entries:
        print("[leaderboard] No scores recorded yet")
        return
    for rank, entry in enumerate(entries, start=1):
        print(f"{rank:>3}. {entry.member:<30} {int(entry.score):>5}")


def cmd_doctor(args):
    settings = load_settings(store_backend=args.store)
    checks = run_doctor(settings)
    ok_count = 0
    for chk in checks:
        mark = "OK" if chk.ok else "FAIL"
        print(f"[{mark}] {chk.name}: {chk.detail}")
        ok_count += int(chk.ok)
    print(f"\n{ok_count}/{len(checks)} checks passing")
