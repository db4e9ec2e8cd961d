# storefront/data/seed.py
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel
from storefront.data.models.user import UserModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CATEGORIES = [
    {
        "name": "Road Bikes",
        "slug": "road-bikes",
        "description": "Speed and efficiency for every road",
        "image_url": "https://images.unsplash.com/photo-1511994298241-608e28f14fde",
    },
    {
        "name": "Mountain Bikes",
        "slug": "mountain-bikes",
        "description": "Conquer any terrain with confidence",
        "image_url": "https://images.unsplash.com/photo-1605825831039-08b1cc0c3737",
    },
    {
        "name": "Accessories",
        "slug": "accessories",
        "description": "Essential gear for every ride",
        "image_url": "https://images.unsplash.com/photo-1576435728678-68d0fbf94e91",
    },
    {
        "name": "Apparel",
        "slug": "apparel",
        "description": "Performance clothing for cyclists",
        "image_url": "https://images.unsplash.com/photo-1489914099268-1dad649f76bf",
    },
]

# (name, slug, category slug, brand, price, compare_at_price, featured, new, description)
PRODUCTS = [
    ("Carbon Elite Road Bike", "carbon-elite-road-bike", "road-bikes", "Specialized", "2499.99", None, True, True,
     "Lightweight carbon frame with precision handling for speed enthusiasts."),
    ("Speed Master X5", "speed-master-x5", "road-bikes", "Trek", "1599.99", "1899.99", True, False,
     "Professional-grade road bike with aerodynamic design and premium components."),
    ("Pro Trail Helmet", "pro-trail-helmet", "accessories", "Giro", "149.99", None, True, False,
     "Ventilated, lightweight helmet with adjustable fit system for maximum comfort and protection."),
    ("Elite Cycling Jersey", "elite-cycling-jersey", "apparel", "Rapha", "89.99", None, True, False,
     "Breathable, moisture-wicking fabric with aerodynamic fit for performance cycling."),
    ("Trail Blazer XL", "trail-blazer-xl", "mountain-bikes", "Santa Cruz", "1899.99", None, False, False,
     "Durable mountain bike with full suspension and responsive handling for challenging trails."),
    ("Aero Road Helmet", "aero-road-helmet", "accessories", "POC", "129.99", "169.99", False, False,
     "Sleek, aerodynamic helmet designed for road cycling with integrated ventilation channels."),
    ("Pro Cycling Shoes", "pro-cycling-shoes", "apparel", "Shimano", "149.99", None, False, False,
     "Lightweight cycling shoes with stiff carbon sole and precision fit for power transfer."),
    ("Ultra Bright Bike Lights", "ultra-bright-bike-lights", "accessories", "Light & Motion", "79.99", None, False, False,
     "High-powered, water-resistant bike lights for visibility and safety in all conditions."),
    ("Carbon Fiber Pedals", "carbon-fiber-pedals", "accessories", "Crank Brothers", "119.99", None, False, True,
     "Ultralight carbon pedals with durable bearings and wide platform for power and control."),
]


def seed(db: Session) -> bool:
    # not forcing: only seed an empty catalog
    if db.execute(select(ProductModel.id).limit(1)).first():
        db.rollback()
        return False

    try:
        if not db.execute(select(UserModel).where(UserModel.username == "admin")).scalar_one_or_none():
            db.add(UserModel(
                username="admin",
                email="admin@cyclepro.com",
                first_name="Admin",
                last_name="User",
                is_admin=True,
            ))

        by_slug = {}
        for data in CATEGORIES:
            category = CategoryModel(**data)
            db.add(category)
            by_slug[category.slug] = category
        db.flush()

        for name, slug, category_slug, brand, price, compare_at, featured, new, description in PRODUCTS:
            db.add(ProductModel(
                name=name,
                slug=slug,
                description=description,
                price=Decimal(price),
                compare_at_price=Decimal(compare_at) if compare_at else None,
                category_id=by_slug[category_slug].id,
                brand=brand,
                in_stock=True,
                is_featured=featured,
                is_new=new,
            ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Seeded {len(CATEGORIES)} categories and {len(PRODUCTS)} products")
    return True
