# orderdesk/catalog_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Catalog Service (dev mock)")


PRODUCTS = {
    "1": {"id": "1", "name": "Queso colonia", "units": ["kg"], "location": "Camara", "status": "complete"},
    "2": {"id": "2", "name": "Huevos", "units": ["caja", "unidad"], "location": "Deposito", "status": "complete"},
    "3": {"id": "3", "name": "Leche", "units": ["litro"], "location": "Camara", "status": "complete"},
    "4": {"id": "4", "name": "Papas", "units": ["funda", "kg"], "location": None, "status": "complete"},
    "5": {"id": "5", "name": "Yerba 1kg", "units": ["unidad"], "location": "Estanteria A", "status": "pending"},
}


@app.get("/products")
def list_products():
    return sorted(PRODUCTS.values(), key=lambda p: p["name"])


@app.get("/products/{product_id}")
def get_product(product_id: str):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
