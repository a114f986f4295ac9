import matplotlib

# examples call plt.show()
matplotlib.use("Agg")
