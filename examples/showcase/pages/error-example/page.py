import random

PRODUCTS = [{"id": 1, "name": "One"}, {"id": 2, "name": "Two"}, {"id": 3, "name": "Three"}]


async def get_products() -> list[dict]:
    # Fails roughly 40% of the time
    if random.random() > 0.6:
        raise RuntimeError("Failed to fetch products")
    return PRODUCTS


async def page() -> str:
    products = await get_products()
    items = "".join(f"<div><p>{p['name']}</p></div>" for p in products)
    return f'<div class="p-4"><h1>Product List:</h1><div class="grid">{items}</div></div>'
