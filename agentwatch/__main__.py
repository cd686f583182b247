"""Run the heartbeat monitor: python -m agentwatch [config] [--once]"""

from agentwatch.launcher import main

if __name__ == "__main__":
    main()
