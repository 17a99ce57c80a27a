# storefront/core/locales.py

# Сообщения об ошибках: общие
ERROR_UNAUTHORIZED = "Unauthorized"
ERROR_FORBIDDEN_ADMIN = "Forbidden: Admin access required"
ERROR_TOO_MANY_REQUESTS = "Too many requests. Please try again later."
ERROR_INTERNAL = "Internal Server Error"

# Каталог
ERROR_PRODUCT_NOT_FOUND = "Product not found"
ERROR_PRODUCT_OUT_OF_STOCK = "Product out of stock"
ERROR_PRODUCT_NAME_TAKEN = "A product with this name already exists"
ERROR_PRODUCT_HAS_ORDERS = "Cannot delete product: It is part of {count} order(s). Consider setting stock to 0 instead."
ERROR_CATEGORY_NOT_FOUND = "Category not found"
ERROR_CATEGORY_NAME_TAKEN = "A category with this name already exists"
ERROR_CATEGORY_HAS_PRODUCTS = "Cannot delete category with {count} products. Please move or delete products first."
ERROR_IMAGE_NOT_FOUND = "Image not found"
ERROR_IMAGE_ID_REQUIRED = "Image ID is required"
ERROR_INVALID_IMAGE_URL = "Invalid image URL"
ERROR_IMAGE_IDS_MISMATCH = "Image IDs do not match this product's images"
ERROR_SALE_NOT_FOUND = "Sale not found"
ERROR_SALE_CATEGORIES_MISSING = "One or more categories not found"
ERROR_SALE_DATES_ORDER = "End date must be after start date"

# Корзина
ERROR_STOCK_LIMIT_REACHED = "Cannot add more items - stock limit reached"
ERROR_ITEM_NOT_IN_CART = "Item not in cart"
ERROR_NO_ITEMS_TO_SYNC = "No items to sync"
ERROR_TOO_MANY_ITEMS_TO_SYNC = "Too many items to sync (max {limit})"
ERROR_NO_VALID_ITEMS_TO_SYNC = "No valid items to sync"
SYNC_PRODUCT_NOT_FOUND = "Product {product_id} not found"
SYNC_PRODUCT_OUT_OF_STOCK = "{name} is out of stock"

# Избранное
ERROR_ALREADY_IN_FAVORITES = "Product already in favorites"
ERROR_FAVORITE_NOT_FOUND = "Favorite not found"

# Оформление заказа
ERROR_GUEST_EMAIL_REQUIRED = "Valid email is required for guest checkout"
ERROR_INVALID_CART_ITEMS = "Invalid cart items"
ERROR_CHECKOUT_PRODUCT_NOT_FOUND = "Product not found: {product_id}"
ERROR_CART_EMPTY = "Cart is empty"
ERROR_INSUFFICIENT_STOCK = "Insufficient stock for {name}. Only {stock} available."
ERROR_CHECKOUT_FAILED = "Failed to create checkout session"
ERROR_ACCOUNT_EMAIL_REQUIRED = "An email address is required to check out"

# Заказы
ERROR_ORDER_NOT_FOUND = "Order not found"
ERROR_GUEST_ORDER_NOT_FOUND = "Order not found. Please check your email and order number."
ERROR_INVALID_GUEST_TOKEN = "Invalid guest token"
ERROR_INVALID_EMAIL = "Invalid email format"
ERROR_INVALID_ORDER_ID = "Invalid order ID format"
ERROR_INVALID_STATUS = "Invalid status"
ERROR_INVALID_CARRIER = "Invalid shipping carrier"
ERROR_CANNOT_SHIP = "Cannot ship order with status: {status}"
ERROR_ALREADY_HAS_TRACKING = "Order already has tracking number"
ERROR_NO_SHIPPING_ADDRESS = "Order has no shipping address"
ERROR_LABEL_FAILED = "Failed to create shipping label"
ERROR_TRACKING_AND_CARRIER_REQUIRED = "Tracking number and carrier are required"
ERROR_CANNOT_DELIVER = "Cannot mark as delivered - order status is: {status}"
ERROR_EMAIL_REQUIRED = "Email address is required to link orders"

# Вебхуки
ERROR_NO_SIGNATURE = "No signature"
ERROR_INVALID_SIGNATURE = "Invalid signature"
ERROR_INVALID_PAYLOAD = "Invalid payload"
ERROR_MISSING_ORDER_ID = "Missing order ID"
ERROR_WEBHOOK_FAILED = "Webhook handler failed"

# Сообщения об успехе
SUCCESS_ORDERS_LINKED = "Linked {count} guest order(s) to your account"
