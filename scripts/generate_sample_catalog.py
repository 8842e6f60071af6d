#!/usr/bin/env python3
"""
Создание тестового JSON каталога для локального запуска и ручной проверки поиска
"""
import argparse
import json
import random
from pathlib import Path

RUBROS = {
    "Herramientas": ["MARTILLO", "DESTORNILLADOR", "PINZA", "LLAVE FRANCESA", "SERRUCHO"],
    "Electricidad": ["CABLE UNIPOLAR", "LLAVE TÉRMICA", "TOMACORRIENTE", "CINTA AISLADORA"],
    "Plomería": ["CAÑO PVC", "CODO PVC", "CANILLA", "TEFLÓN"],
    "Bulonería": ["TORNILLO", "BULÓN", "TARUGO", "ARANDELA"],
}
MARCAS = ["Stanley", "Bahco", "Tramontina", "Pirelli", "Tigre", "Fischer"]


def create_sample_catalog(size: int, output_file: Path, seed: int = 42) -> Path:
    """Создает каталог со смесью корректных и неполных записей"""
    rng = random.Random(seed)
    records = []

    for number in range(1, size + 1):
        rubro = rng.choice(list(RUBROS))
        record = {
            "codigo": str(1000 + number),
            "descripcion": f"{rng.choice(RUBROS[rubro])} {rng.randint(2, 120)}MM",
            "rubro": rubro,
            "marca": rng.choice(MARCAS),
            "precio_venta": round(rng.uniform(150, 95000), 2),
        }
        # Часть записей без цены или с ценой "a consultar", как в реальных выгрузках
        if number % 97 == 0:
            record.pop("precio_venta")
        elif number % 53 == 0:
            record["precio_venta"] = "consultar"
        records.append(record)

    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(json.dumps(records, ensure_ascii=False, indent=1), encoding="utf-8")

    print(f"✅ Создан тестовый каталог: {output_file}")
    print(f"   Записей: {len(records)}")
    print(f"   Размер: {output_file.stat().st_size / 1024:.1f} KB")

    return output_file


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--size", type=int, default=5000, help="Количество записей")
    parser.add_argument("--output", type=Path, default=Path("data/products.json"))
    args = parser.parse_args()

    create_sample_catalog(args.size, args.output)
