from __future__ import annotations

import logging
from decimal import Decimal

from procurement.app.db.base import Base
from procurement.app.db.session import SessionLocal, engine
from procurement.app.db.models.models_v1 import CatalogItem

logger = logging.getLogger(__name__)

CATALOG = [
    # id, name, category, supplier, manufacturer, model, price_usd, lead_time_days, in_stock
    ("GSK-SW-0150", "Spiral Wound Gasket 6in 150#", "Gasket", "AcmeValves", "Flexitallic", "CG-6-150", "18.50", 5, True),
    ("VLV-GT-0200", "Gate Valve 2in Class 300", "Valve", "AcmeValves", "Velan", "GT-2-300", "120.00", 21, True),
    ("VLV-BL-0400", "Ball Valve 4in Full Port", "Valve", "AcmeValves", "Cameron", "T31-4FP", "845.00", 30, False),
    ("PMP-CF-0075", "Centrifugal Pump 7.5HP", "Pump", "BetaPumps", "Goulds", "3196-MT", "6400.00", 45, True),
    ("PMP-DP-0010", "Diaphragm Metering Pump", "Pump", "BetaPumps", "Milton Roy", "MROY-A", "2150.00", 28, True),
    ("INS-PT-0600", "Pressure Transmitter 0-600psi", "Instrumentation", "GammaInstruments", "Rosemount", "3051S", "1890.00", 14, True),
    ("HX-PL-0025", "Plate Heat Exchanger 25 plates", "Heat Exchanger", "GammaInstruments", "Alfa Laval", "M6-FG", "9800.00", 60, False),
    ("TL-TW-0250", "Torque Wrench 1/2in 250ft-lb", "Hand Tool", "BetaPumps", "Snap-on", "QD3R250", "410.00", 7, True),
]


def run_seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        added = 0
        for row in CATALOG:
            item_id, name, category, supplier, manufacturer, model, price, lead, in_stock = row
            if db.get(CatalogItem, item_id):
                continue
            db.add(
                CatalogItem(
                    id=item_id,
                    name=name,
                    category=category,
                    supplier=supplier,
                    manufacturer=manufacturer,
                    model=model,
                    price_usd=Decimal(price),
                    lead_time_days=lead,
                    in_stock=in_stock,
                )
            )
            added += 1
        db.commit()
        logger.info("catalog_seeded added=%s total=%s", added, len(CATALOG))
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_seed()
