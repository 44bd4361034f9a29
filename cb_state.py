import os

from dotenv import load_dotenv

load_dotenv()

# Tick-rate meter
MAX_TPS = float(os.getenv("CB_MAX_TPS", "20.0"))
TPS_WINDOW = float(os.getenv("CB_TPS_WINDOW", "1.0"))  # seconds
TICK_HISTORY = int(os.getenv("CB_TICK_HISTORY", "200"))

print(
    f"Configuration loaded. max_tps={MAX_TPS}, tps_window={TPS_WINDOW}, tick_history={TICK_HISTORY}"
)
