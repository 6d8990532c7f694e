from chess_branches import __version__
from chess_branches.engine import BOARD_FEATURE_NAMES, FEATURE_COUNT


def main():
    print(
        f"chess-branches {__version__}: {FEATURE_COUNT} engine features, "
        f"{len(BOARD_FEATURE_NAMES)} in-process features, {4 * FEATURE_COUNT + 1} CSV columns"
    )


if __name__ == "__main__":
    main()
