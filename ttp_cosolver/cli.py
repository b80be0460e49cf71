import argparse
import concurrent.futures
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence

from ttp_cosolver.cosolver import Cosolver, CosolverConfig
from ttp_cosolver.data import Instance, load_instance, load_ttp_instances
from ttp_cosolver.evaluation import aggregate_fitness, evaluate_solver
from ttp_cosolver.log import log
from ttp_cosolver.solvers.annealing import AnnealingConfig, trial_count
from ttp_cosolver.solvers.base import tour_length
from ttp_cosolver.solvers.heuristics import Constructive


def load_data(paths: Sequence[str], max_items: Optional[int] = None) -> List[Instance]:
    """Load files as given; directories are scanned for .ttp files up to ``max_items`` items."""
    targets = [Path(p) for p in paths]
    batches: List[List[Instance]] = [[] for _ in targets]

    def worker(idx_path):
        idx, path = idx_path
        if path.is_dir():
            batches[idx] = load_ttp_instances(path, max_items=max_items)
        else:
            batches[idx] = [load_instance(path)]

    with concurrent.futures.ThreadPoolExecutor(max_workers=min(8, len(targets))) as ex:
        list(ex.map(worker, enumerate(targets)))
    instances = [inst for batch in batches for inst in batch]
    if not instances:
        raise RuntimeError(
            f"No TTP instances found in {', '.join(paths)}. "
            "Pass .ttp files or directories containing them."
        )
    return instances


def build_config(args) -> CosolverConfig:
    return CosolverConfig(
        construct=args.construct,
        random_seed=args.seed,
        two_opt_max_iter=args.two_opt_iter,
        annealing=AnnealingConfig(debug=args.debug),
        debug=args.debug,
    )


def solve(args) -> None:
    t0 = time.perf_counter()
    instances = load_data(args.paths, args.max_items)
    log(f"loaded {len(instances)} instances in {time.perf_counter() - t0:.2f}s")
    cfg = build_config(args)
    fitnesses = []
    try:
        for inst in instances:
            cancel = threading.Event()
            timer = None
            if args.time_limit:
                timer = threading.Timer(args.time_limit, cancel.set)
                timer.daemon = True
                timer.start()
            try:
                solution, fitness = evaluate_solver(Cosolver(cfg), inst, cancel)
            finally:
                if timer is not None:
                    timer.cancel()
            fitnesses.append(fitness)
            stopped = " (time limit)" if cancel.is_set() else ""
            log(
                f"{inst.name}: ob={fitness.objective:.2f} items={len(solution.picked)} "
                f"length={tour_length(inst, solution.tour):.0f} "
                f"wend={solution.wend} time={fitness.runtime:.2f}s{stopped}"
            )
    except KeyboardInterrupt:
        print("Interrupted.")
    if len(fitnesses) > 1:
        agg = aggregate_fitness(fitnesses)
        log(f"mean ob={agg['objective']:.2f} mean time={agg['runtime']:.2f}s max drift={agg['drift']:.2e}")


def info(args) -> None:
    for inst in load_data(args.paths, args.max_items):
        print(
            f"{inst.name}: cities={inst.nb_cities} items={inst.nb_items} capacity={inst.capacity} "
            f"speed=[{inst.min_speed}, {inst.max_speed}] rent={inst.rent_rate} "
            f"trials/step={trial_count(inst.nb_items)}"
        )


def main():
    parser = argparse.ArgumentParser(description="TTP co-solver CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    solve_parser = subparsers.add_parser("solve", help="Solve TTP instances (files or directories)")
    solve_parser.add_argument("paths", nargs="+")
    solve_parser.add_argument(
        "--construct",
        default="nearest_neighbor",
        choices=Constructive.TOUR_STRATEGIES,
        help="Initial tour strategy",
    )
    solve_parser.add_argument("--seed", type=int, default=123)
    solve_parser.add_argument("--time-limit", type=float, default=None, help="Seconds per instance")
    solve_parser.add_argument("--two-opt-iter", type=int, default=50)
    solve_parser.add_argument("--debug", action="store_true")
    solve_parser.add_argument("--max-items", type=int, default=None, help="Skip directory instances with more items")
    solve_parser.set_defaults(func=solve)

    info_parser = subparsers.add_parser("info", help="Summarise TTP instances")
    info_parser.add_argument("paths", nargs="+")
    info_parser.add_argument("--max-items", type=int, default=None, help="Skip directory instances with more items")
    info_parser.set_defaults(func=info)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
