import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import pandas as pd

from distnet.core.build.validate import raise_on_errors, validate_network
from distnet.core.models.network import Network
from distnet.core.postprocess.grid import GridExporter
from distnet.core.postprocess.plots import SegmentPlotRenderer
from distnet.core.postprocess.summary import find_capacity_exceedances, summarize_pipe_loads

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

OUT_DIR = ROOT / "out"
TODAY = datetime(2025, 1, 1)


# 1) Red demo (semilla fija)
network = Network.demo(seed=7, query_date=TODAY)
raise_on_errors(validate_network(network))

network.renderers.append(GridExporter(str(OUT_DIR / "grid.csv")))
network.renderers.append(SegmentPlotRenderer(str(OUT_DIR / "network.png")))

# 2) Render a la fecha actual
network.render({"useLoadWidth": True, "colorMode": "loadScale"})

print("\n--- Carga por submain ---")
for root in network.roots:
    print(root.id, root.status, f"{root.load:.2f}")

# 3) Insertar un tool antes del primero del primer lateral
lateral = network.roots[0].children[0]
new_tool = network.insert_sibling(
    lateral.children[0].id, "before",
    load=12.5, install_at=TODAY - timedelta(days=30), remove_at=TODAY + timedelta(days=365),
)
print("\nInsertado:", new_tool.id, "en", lateral.id, "->", [c.id for c in lateral.children])

# 4) Mover la fecha un año
network.render({"currentDate": TODAY + timedelta(days=365), "colorMode": "capacityWarning"})

df = pd.DataFrame([r.__dict__ for r in summarize_pipe_loads(network)])
print(df[df["kind"] != "tool"].to_string(index=False, float_format=lambda x: f"{x:10.2f}"))

over = find_capacity_exceedances(network)
print(f"\nSegmentos sobre capacidad: {len(over)}")
for e in over[:10]:
    print(f"  {e.pipe_id}[{e.segment_index}] load={e.load:.2f} cap={e.capacity:.0f} ({e.ratio:.0%})")
