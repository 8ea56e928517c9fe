"""
Populate a development database with sample users, tags, assets and maintenance records.

Usage:
    python scripts/seed_database.py [--reset]
"""
import sys
import os
import argparse
from datetime import timedelta

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

try:
    from dotenv import load_dotenv
    load_dotenv()
except Exception as e:
    print(f"WARNING: Could not load .env file: {e}")

from assettag.config import settings
from assettag.db import SessionLocal, create_tables
from assettag.models.models import Activity, AssetFile, AssetNote, Equipment, Maintenance, Notification, Tag, User
from assettag.auth.security import get_password_hash
from assettag.services.app_settings import get_or_create_settings
from assettag.services.permissions import role_defaults
from assettag.services.scheduling import utcnow, calculate_next_maintenance_date, apply_maintenance_status


USERS = [
    {"name": "Administrator", "email": settings.admin_email, "password": settings.admin_password, "role": "Administrator", "department": "Administration"},
    {"name": "John Manager", "email": "manager@assettag.local", "password": "manager123", "role": "Manager", "department": "Operations"},
    {"name": "Jane User", "email": "user@assettag.local", "password": "user123", "role": "User", "department": "IT Department"},
]

TAGS = {
    "Department": [
        ("IT Department", "#3B82F6", "Information Technology"),
        ("Operations", "#10B981", "Operations Department"),
        ("Finance", "#F59E0B", "Finance and Accounting"),
        ("Engineering", "#6366F1", "Engineering Department"),
        ("Maintenance", "#F97316", "Maintenance Services"),
    ],
    "Location": [
        ("Main Building", "#3B82F6", "Primary office building"),
        ("Warehouse A", "#10B981", "Storage facility A"),
        ("Server Room", "#EF4444", "Data center and servers"),
        ("Workshop", "#F97316", "Maintenance workshop"),
    ],
    "Asset Type": [
        ("Computer", "#3B82F6", "Desktop and laptop computers"),
        ("Printer", "#10B981", "Printing equipment"),
        ("Vehicle", "#EF4444", "Company vehicles"),
        ("Server", "#8B5CF6", "Network servers"),
        ("Tool", "#F97316", "Hand and power tools"),
    ],
    "Status": [
        ("Available", "#10B981", "Ready for use"),
        ("In Use", "#3B82F6", "Currently being used"),
        ("Under Maintenance", "#F59E0B", "Being serviced"),
        ("Retired", "#64748B", "No longer in service"),
    ],
}

ASSETS = [
    {"asset_id": "AST-0001", "name": "Dell Latitude 7440", "category": "Computer", "location": "Main Building", "status": "In Use",
     "model": "Latitude 7440", "serial": "DL7440-001", "purchase_date": "2024-01-15", "cost": 1450000, "department": "IT Department",
     "assigned_to": "Jane User", "maintenance_period": "Every 6 Months"},
    {"asset_id": "AST-0002", "name": "HP LaserJet Pro", "category": "Printer", "location": "Main Building", "status": "Available",
     "model": "M404dn", "serial": "HPLJ-404-77", "purchase_date": "2023-06-01", "cost": 380000, "department": "Finance",
     "maintenance_period": "Quarterly"},
    {"asset_id": "AST-0003", "name": "Toyota Hilux", "category": "Vehicle", "location": "Warehouse A", "status": "In Use",
     "model": "Hilux 2.8 GD-6", "serial": "TH-2022-9931", "purchase_date": "2022-03-10", "cost": 42000000, "department": "Operations",
     "assigned_to": "John Manager", "maintenance_period": "Monthly"},
    {"asset_id": "AST-0004", "name": "PowerEdge R750", "category": "Server", "location": "Server Room", "status": "In Use",
     "model": "R750", "serial": "PE-R750-5512", "purchase_date": "2023-11-20", "cost": 9800000, "department": "IT Department",
     "maintenance_period": "Annually"},
    {"asset_id": "AST-0005", "name": "Makita Drill Set", "category": "Tool", "location": "Workshop", "status": "Under Maintenance",
     "model": "DHP482", "serial": "MK-482-210", "purchase_date": "2021-09-05", "cost": 95000, "department": "Maintenance",
     "maintenance_period": "As Needed"},
]


def reset(db):
    for model in (AssetNote, AssetFile, Maintenance, Notification, Activity, Equipment, Tag):
        db.query(model).delete(synchronize_session=False)
    db.commit()


def seed(reset_first: bool = False):
    if settings.database_url.startswith("sqlite:///./"):
        os.makedirs("var", exist_ok=True)
    create_tables()
    db = SessionLocal()
    try:
        if reset_first:
            reset(db)
            print("[RESET] Cleared assets, tags, maintenance, notifications and activities")

        get_or_create_settings(db)

        for u in USERS:
            if db.query(User).filter(User.email == u["email"]).first():
                continue
            db.add(User(
                name=u["name"],
                email=u["email"],
                password_hash=get_password_hash(u["password"]),
                role=u["role"],
                status="Active",
                department=u["department"],
                permissions=role_defaults(u["role"]),
            ))
            print(f"[USER] {u['email']} ({u['role']})")

        for category, items in TAGS.items():
            for name, color, description in items:
                if db.query(Tag).filter(Tag.category == category, Tag.name == name).first():
                    continue
                db.add(Tag(name=name, category=category, color=color, description=description))
        db.commit()

        now = utcnow()
        for data in ASSETS:
            if db.query(Equipment).filter(Equipment.asset_id == data["asset_id"]).first():
                continue
            asset = Equipment(currency=settings.default_currency, maintenance_schedule=data["maintenance_period"], last_modified=now, **data)
            last_service = now - timedelta(days=20)
            asset.last_maintenance_date = last_service
            asset.next_scheduled_maintenance = calculate_next_maintenance_date(last_service, asset.maintenance_period)
            apply_maintenance_status(db, asset, now)
            db.add(asset)
            db.add(Maintenance(
                asset_id=asset.asset_id,
                asset_name=asset.name,
                date=last_service,
                scheduled_date=last_service,
                completed_date=last_service,
                service_type="Routine Maintenance",
                technician="Seed Technician",
                cost=15000,
                status="Completed",
                completed_by="Seed Technician",
                next_maintenance_date=asset.next_scheduled_maintenance,
            ))
            if asset.next_scheduled_maintenance:
                db.add(Maintenance(
                    asset_id=asset.asset_id,
                    asset_name=asset.name,
                    date=asset.next_scheduled_maintenance,
                    scheduled_date=asset.next_scheduled_maintenance,
                    service_type="Preventive Maintenance",
                    technician="Seed Technician",
                    cost=0,
                    status="Scheduled",
                    description=f"Scheduled {asset.maintenance_period} Preventive Maintenance",
                ))
            print(f"[ASSET] {asset.asset_id} {asset.name} -> {asset.maintenance_status}")
        db.commit()
        print("Seed complete.")
    except Exception as e:
        db.rollback()
        print(f"Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed a development database")
    parser.add_argument("--reset", action="store_true", help="Delete existing assets, tags and history first")
    args = parser.parse_args()
    seed(args.reset)
