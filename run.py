"""
PlagueBoard - run.py
Headless entry point: plays a scenario for N rounds and prints the board.

Usage: python run.py [board_id] [rounds] [seed]
"""

import sys
from pathlib import Path

# Ensure we can import plagueboard packages
project_root = Path(__file__).parent.resolve()
sys.path.insert(0, str(project_root))

from engine.census import visible_counts
from engine.data_loader import BlockType
from engine.loop import DEFAULT_BOARD_ID, SimulationLoop


def print_board(sim: SimulationLoop) -> None:
    print(f"--- turn {sim.turn} ---")
    for block in sim.board:
        healthy, infected = visible_counts(block, god_view=True)
        flags = ""
        if block.is_working:
            flags += " working"
        if block.is_quarantined:
            flags += " quarantined"
        links = ", ".join(n.name for n in sim.board.neighbours(block))
        print(f"  {block.name:<16} {block.block_type.value:<10} "
              f"healthy={healthy:<6} infected={infected:<6} material={block.material:<6}{flags}")
        print(f"  {'':<16} -> {links or '-'}")
    factories = sim.board.blocks_of_type(BlockType.FACTORY)
    working = sum(1 for f in factories if f.is_working)
    totals = sim.totals()
    print(f"  total population={totals.population} infected={totals.infected} "
          f"material={totals.material} factories working={working}/{len(factories)}")


def main():
    board_id = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_BOARD_ID
    rounds = int(sys.argv[2]) if len(sys.argv) > 2 else 12
    seed = int(sys.argv[3]) if len(sys.argv) > 3 else None

    sim = SimulationLoop(board_id=board_id, seed=seed,
                         chronicle_path=project_root / "sessions" / f"{board_id}.jsonl")
    sim.open_session()
    print_board(sim)
    for _ in range(rounds):
        sim.tick()
        print_board(sim)
    sim.close_session()


if __name__ == "__main__":
    main()
