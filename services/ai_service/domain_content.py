"""
Domain-specific content for the FabriX support assistant.
Static tables only: loaded once at import, never mutated.
"""

# Storefront FAQ grouped by category: (category_id, name, [(entry_id, question, answer), ...])
FAQ_CATEGORIES = (
    ("ordering", "Ordering & Payment", (
        ("order-minimum",
         "What is the minimum order quantity for clothing?",
         "Our minimum order quantity varies by product, but typically starts at 50 pieces per style "
         "and color. This allows us to provide high-quality customization while keeping costs reasonable."),
        ("order-time",
         "How long does it take to fulfill an order?",
         "Production time is typically 2-3 weeks after order confirmation and artwork approval. For large "
         "orders or custom fabrics, it may take 3-4 weeks. Shipping time depends on your location, but we "
         "offer expedited shipping options if you need your order sooner."),
        ("payment-methods",
         "What payment methods do you accept?",
         "We accept all major credit cards (Visa, Mastercard, American Express), PayPal, and bank transfers "
         "for larger orders. For corporate clients, we also offer net 30 payment terms subject to credit approval."),
        ("order-cancel",
         "Can I cancel or modify my order after placing it?",
         "Order modifications or cancellations are possible within 24 hours of placing your order. After this "
         "period, once production has begun, we cannot accept cancellations. Please contact our customer "
         "service team immediately if you need to make changes."),
    )),
    ("products", "Products & Customization", (
        ("samples-available",
         "Can I get samples before placing a bulk order?",
         "Yes, we offer sample services for a nominal fee. You can order individual samples to check the "
         "quality, color, and fit before placing a larger order. Sample costs are credited toward your final "
         "order if you proceed with the bulk purchase."),
        ("custom-design",
         "Can I create custom designs with my own logo?",
         "Absolutely! You can upload your own logo or use our Logo Generator to create a custom design. We "
         "offer various printing and embroidery techniques to apply your logo to the clothing items. Our team "
         "will work with you to ensure optimal placement and quality."),
        ("fabric-quality",
         "What is the quality of your fabrics?",
         "We source our fabrics from premium suppliers who meet international quality and sustainability "
         "standards. Each fabric undergoes rigorous testing for durability, colorfastness, and comfort. Detailed "
         "specifications including composition, weight, and care instructions are provided on each product page."),
        ("size-guide",
         "How do I find the right sizes for my order?",
         "We provide detailed size charts for each product category. For bulk orders, we recommend ordering "
         "samples first to confirm sizing. We also offer size customization for larger orders, including the "
         "creation of custom size charts tailored to your specific requirements."),
        ("eco-friendly",
         "Do you offer eco-friendly fabric options?",
         "Yes, we offer a range of sustainable and eco-friendly fabrics including organic cotton, recycled "
         "polyester, and other environmentally conscious options. These are clearly marked on our product "
         "pages, and we can provide certification documentation upon request."),
    )),
    ("shipping", "Shipping & Delivery", (
        ("international-shipping",
         "Do you ship internationally?",
         "Yes, we ship to most countries worldwide. International shipping costs and delivery times vary "
         "based on location. You can get an estimate of shipping costs during checkout before completing "
         "your purchase."),
        ("track-order",
         "How can I track my order?",
         "Once your order ships, you will receive a confirmation email with a tracking number and link. You "
         "can also track your order by logging into your account on our website or contacting our customer "
         "service team."),
        ("shipping-cost",
         "How are shipping costs calculated?",
         "Shipping costs are calculated based on the weight of your order, dimensions, and delivery location. "
         "We work with multiple shipping partners to offer you the best rates. For bulk orders, we may split "
         "shipments to optimize costs."),
    )),
    ("returns", "Returns & Exchanges", (
        ("return-policy",
         "What is your return policy?",
         "For standard catalog items without customization, we offer a 30-day return policy. Custom orders "
         "(including logo printing, embroidery, or custom fabrics) can only be returned if there is a "
         "manufacturing defect. All returns must be in original unused condition with tags attached."),
        ("defective-items",
         "What if I receive defective items?",
         "If you receive defective items, please contact us within 7 days of delivery with photos of the "
         "defects. Our quality control team will review your claim and arrange for replacements or refunds as "
         "appropriate, including covering return shipping costs for confirmed defects."),
        ("exchange-process",
         "How does the exchange process work?",
         "To request an exchange, contact our customer service team within 30 days of receiving your order. "
         "They will guide you through the process and provide a return label if the exchange is due to our "
         "error. For size exchanges on custom orders, additional fees may apply."),
    )),
    ("account", "Account & Privacy", (
        ("create-account",
         "Do I need to create an account to place an order?",
         "Yes, an account is required to place orders. This allows us to provide better service, save your "
         "order history, and simplify reordering. Creating an account is quick and only requires basic "
         "information to get started."),
        ("data-privacy",
         "How is my personal data handled?",
         "We take data privacy seriously. Your personal information is encrypted and stored securely. We never "
         "share your data with third parties except as required to fulfill your order (such as shipping "
         "partners). You can review our complete Privacy Policy for more details."),
        ("save-designs",
         "Can I save my designs for future orders?",
         "Yes, when you create a design using our Logo Generator or upload your own designs, they are saved to "
         "your account. You can access and reuse them for future orders, making reordering simple and consistent."),
    )),
)

# Category pre-selection keywords; iteration order decides which category wins
CATEGORY_KEYWORDS = (
    ("returns", ("return", "refund", "exchange", "defect", "damaged")),
    ("shipping", ("shipping", "ship ", "ships", "deliver", "track", "courier")),
    ("ordering", ("minimum order", "minimum quantity", "payment", "pay with", "paypal", "credit card",
                  "cancel", "modify my order", "fulfill", "production time")),
    ("products", ("sample", "custom design", "custom order", "customiz", "logo", "fabric", "size", "sizing",
                  "eco-friendly", "organic", "sustainab", "embroider")),
    ("account", ("account", "sign up", "register", "privacy", "personal data", "save my design")),
)

RESTRICTED_TOPICS = (
    "medical advice", "legal advice", "financial advice", "investment advice", "tax advice",
    "diagnos", "prescription", "lawsuit",
    "politic", "election", "religio",
    "porn", "sexual", "adult content", "nude",
    "violen", "weapon", "firearm", "explosive",
    "drugs", "gambling", "hacking",
)

DOMAIN_KEYWORDS = (
    "fabrix", "product", "fabric", "cloth", "apparel", "garment", "shirt", "hoodie", "jacket",
    "uniform", "cotton", "polyester", "linen", "wool", "silk", "material",
    "order", "buy", "purchase", "bulk", "price", "cost", "quote", "discount", "invoice",
    "pay", "checkout", "cart",
    "ship", "deliver", "track", "return", "refund", "exchange",
    "size", "fit", "color", "colour", "logo", "design", "embroider", "print", "custom", "sample",
    "stock", "catalog", "account", "login", "password",
)

ESCALATION_PHRASES = (
    "speak to human", "speak to a human", "talk to a human", "talk to human",
    "talk to agent", "talk to an agent", "speak to agent", "speak to an agent",
    "speak to representative", "speak to a representative",
    "customer service", "customer support", "talk to support",
    "speak to someone", "speak with someone", "contact person", "real person",
)

HEDGING_PHRASES = (
    "i don't know", "i do not know",
    "i'm not sure", "i am not sure",
    "i don't have enough information", "i do not have enough information",
    "without more information",
    "no information available",
    "i don't have access", "i do not have access",
    "i'm unable to", "i am unable to",
    "i cannot provide", "i can't provide",
)

# (topic label, keywords); first matching topic labels the support message
SUPPORT_TOPICS = (
    ("shipping and delivery", ("ship", "deliver", "track", "courier")),
    ("returns and exchanges", ("return", "refund", "exchange", "defect")),
    ("payments and billing", ("pay", "invoice", "billing", "price", "cost", "quote")),
    ("custom designs", ("logo", "design", "embroider", "print", "custom")),
    ("fabrics and materials", ("fabric", "material", "cotton", "polyester", "linen", "wool", "silk")),
    ("sizing", ("size", "sizing", "fit")),
    ("your account", ("account", "login", "password", "privacy")),
    ("product availability", ("in stock", "stock", "color", "colour", "availab")),
    ("your order", ("order",)),
)

DEFAULT_SUPPORT_TOPIC = "this topic"

REFUSAL_MESSAGE = (
    "I'm sorry, but I can't help with that topic. I can answer questions about FabriX products, "
    "fabrics, custom orders, shipping, returns and your account."
)

OFF_TOPIC_MESSAGE = (
    "I'm the FabriX support assistant, so I can only help with questions about our clothing and fabrics, "
    "customization, orders, shipping, returns and accounts. What can I help you with?"
)

ESCALATION_MESSAGE = (
    "It sounds like you'd like help from our team. Please fill out our contact form or reach us at "
    "{email} or {phone}, and a member of our customer service team will get back to you shortly."
)

GENERATION_FAILURE_MESSAGE = (
    "I apologize, but I'm having trouble responding right now. Would you like to fill out our "
    "contact form for assistance from our team?"
)

SUPPORT_MESSAGE = (
    "I don't have reliable information about {topic} right now. Our support team can help: please use "
    "the contact form or reach us at {email} or {phone}."
)
