# Define the parameters of the polygonal overapproximation here.
import numpy as np

class ApproximationParams:
	def __init__(self):
		# Hausdorff distance tolerance of the overapproximation.
		self.eps = 1e-3

		# Safety bound on the number of refinements.
		self.maxIterations = 10000

		# Tolerance used to detect degenerate local approximations.
		# None means the numeric epsilon of the set's number type.
		self.tolerance = None

		# Two constraints whose unit normals differ by less than this are redundant.
		self.redundancyTol = 1e-12

		# Polygons with fewer constraints than this are searched linearly.
		self.linearSearchThreshold = 10

	# Assign the Hausdorff distance tolerance.
	def setTolerance(self, eps):
		if not (eps > 0):
			raise ValueError("the tolerance must be positive, got {}".format(eps))
		self.eps = eps

	# Assign the maximum number of refinements.
	def setMaxIterations(self, maxIterations):
		if (maxIterations < 1):
			raise ValueError("at least one iteration is required")
		self.maxIterations = int(maxIterations)

	# Assign the tolerance for degenerate triangles.
	def setDegeneracyTolerance(self, tol):
		if (tol is not None and tol < 0):
			raise ValueError("the degeneracy tolerance must be non-negative")
		self.tolerance = tol

	# Assign the tolerance for redundant constraints.
	def setRedundancyTolerance(self, tol):
		if (tol < 0):
			raise ValueError("the redundancy tolerance must be non-negative")
		self.redundancyTol = tol

	# Assign the size below which the polygon support vector search is linear.
	def setLinearSearchThreshold(self, threshold):
		self.linearSearchThreshold = max(int(threshold), 2)

	# Degeneracy tolerance to use for a given number type.
	def degeneracyTolerance(self, exact):
		if self.tolerance is not None:
			return self.tolerance
		return 0 if exact else np.finfo(float).eps

	# Redundancy tolerance to use for a given number type; exact normals must match exactly.
	def redundancyTolerance(self, exact):
		return 0 if exact else self.redundancyTol
