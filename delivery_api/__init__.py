"""BebCom Delivery API: product/flavor availability, admin bulk updates and a simulated PIX checkout."""
