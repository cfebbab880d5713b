PRODUCTS = [
    {"id": "1", "name": "Mobile", "price": 500},
    {"id": "2", "name": "Laptop", "price": 1500},
    {"id": "3", "name": "Tablet", "price": 1000},
    {"id": "4", "name": "Smart Watch", "price": 200},
    {"id": "5", "name": "Smart TV", "price": 1000},
    {"id": "6", "name": "Smart Home", "price": 1000},
    {"id": "7", "name": "Smart Phone", "price": 1000},
    {"id": "8", "name": "Smart Watch", "price": 200},
]


def page() -> str:
    cards = "".join(
        f'<div class="product"><h2>{p["name"]}</h2><p>${p["price"]}</p>'
        f'<a href="/products/{p["id"]}">View Details</a></div>'
        for p in PRODUCTS
    )
    return f'<h1>Products page</h1><div class="grid">{cards}</div>'
