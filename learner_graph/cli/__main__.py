"""Allow ``python -m learner_graph.cli``."""

from learner_graph.cli.main import main

if __name__ == "__main__":
    main()
