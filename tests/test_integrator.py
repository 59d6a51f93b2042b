"""Tests for the path tracing integrator.

Tests cover:
- Emission-only paths (zero reflectivity, zero bounce limit)
- Ambient radiance for escaping rays
- Degenerate directions
- Russian roulette estimator on an analytic scene
- Variance reduction with more samples
"""

import numpy as np


class TestTerminationRules:
    """Tests for how paths end."""

    def test_zero_reflectivity_returns_emission(self, emitter_scene, rng):
        """Test that a non-reflective object contributes only its emission."""
        from sidequest.core.integrator import trace
        from sidequest.core.ray import Ray, vec3

        ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
        result = trace(ray, emitter_scene, rng, bounce_limit=8)
        assert result.shape == (3,)
        assert np.allclose(result, [2.0, 1.0, 0.5])

    def test_zero_bounce_limit_returns_emission(self, enclosing_scene, rng):
        """Test that with no bounces only the first hit's emission is returned."""
        from sidequest.core.integrator import trace_paths

        directions = np.tile([[0.0, 1.0, 0.0]], (100, 1))
        result = trace_paths(np.zeros((100, 3)), directions, enclosing_scene, rng, bounce_limit=0)
        assert np.allclose(result, 1.0)

    def test_full_reflectivity_zero_bounces(self, rng):
        """Test that reflectivity 1 still stops at the bounce limit."""
        from sidequest.core.integrator import trace_paths
        from sidequest.scene.world import Scene, SceneObject

        scene = Scene(objects=(SceneObject.new(0, 0, 0, 5.0, (0.5, 0.5, 0.5), 1.0),))
        directions = np.tile([[0.0, 0.0, 1.0]], (10, 1))
        result = trace_paths(np.zeros((10, 3)), directions, scene, rng, bounce_limit=0)
        assert np.allclose(result, 0.5)

    def test_full_reflectivity_counts_every_bounce(self, rng):
        """Test that reflectivity 1 inside an emitter adds emission per hit."""
        from sidequest.core.integrator import trace_paths
        from sidequest.scene.world import Scene, SceneObject

        scene = Scene(objects=(SceneObject.new(0, 0, 0, 5.0, (0.5, 0.5, 0.5), 1.0),))
        directions = np.tile([[0.0, 0.0, 1.0]], (10, 1))
        result = trace_paths(np.zeros((10, 3)), directions, scene, rng, bounce_limit=3)
        # 1 primary hit + 3 bounces, every one hitting the enclosing sphere
        assert np.allclose(result, 2.0)

    def test_miss_returns_ambient(self, emitter_scene, rng):
        """Test that an escaping ray returns the ambient radiance."""
        from sidequest.core.integrator import trace
        from sidequest.core.ray import Ray, vec3

        ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, 1.0))
        assert np.allclose(trace(ray, emitter_scene, rng, bounce_limit=8), [0.1, 0.2, 0.3])

    def test_degenerate_direction_contributes_nothing(self, emitter_scene, rng):
        """Test that zero and NaN directions yield zero radiance."""
        from sidequest.core.integrator import trace_paths

        directions = np.array([[0.0, 0.0, 0.0], [np.nan, 0.0, -1.0], [0.0, 0.0, -1.0]])
        result = trace_paths(np.zeros((3, 3)), directions, emitter_scene, rng, bounce_limit=4)
        assert np.all(np.isfinite(result))
        assert np.allclose(result[0], 0.0)
        assert np.allclose(result[1], 0.0)
        assert np.allclose(result[2], [2.0, 1.0, 0.5])

    def test_unnormalized_direction(self, emitter_scene, rng):
        """Test that directions need not be unit length."""
        from sidequest.core.integrator import trace_paths

        result = trace_paths(
            np.zeros((1, 3)), np.array([[0.0, 0.0, -7.0]]), emitter_scene, rng, bounce_limit=2
        )
        assert np.allclose(result[0], [2.0, 1.0, 0.5])

    def test_empty_scene_returns_ambient(self, rng):
        """Test that every ray misses an empty scene."""
        from sidequest.core.integrator import trace_paths
        from sidequest.scene.world import Scene

        scene = Scene(objects=(), ambient=(0.3, 0.3, 0.3))
        directions = rng.normal(size=(16, 3))
        result = trace_paths(np.zeros((16, 3)), directions, scene, rng, bounce_limit=4)
        assert np.allclose(result, 0.3)


class TestEstimator:
    """Statistical tests on an enclosing sphere with a known answer."""

    @staticmethod
    def expected_radiance(reflectivity: float, bounce_limit: int) -> float:
        # Each hit adds emission 1; the path survives k bounces with
        # probability reflectivity^k
        return sum(reflectivity**k for k in range(bounce_limit + 1))

    def test_mean_matches_analytic(self, enclosing_scene, rng):
        """Test the Monte Carlo mean against the analytic expectation."""
        from sidequest.core.integrator import trace_paths
        from sidequest.core.ray import normalize

        n = 40000
        directions = normalize(rng.normal(size=(n, 3)))
        result = trace_paths(np.zeros((n, 3)), directions, enclosing_scene, rng, bounce_limit=4)

        expected = self.expected_radiance(0.5, 4)
        assert abs(result[:, 0].mean() - expected) < 0.02

    def test_variance_decreases_with_samples(self, enclosing_scene, rng):
        """Test that averaging 4 samples per pixel beats 1 sample per pixel."""
        from sidequest.core.integrator import trace_paths

        pixels = 4000
        origins = np.zeros((pixels, 3))
        directions = np.tile([[0.0, 0.0, -1.0]], (pixels, 1))

        def estimate(spp):
            total = np.zeros((pixels, 3))
            for _ in range(spp):
                total += trace_paths(origins, directions, enclosing_scene, rng, bounce_limit=6)
            return total[:, 0] / spp

        one = estimate(1)
        four = estimate(4)
        assert four.var() < one.var()
        assert abs(four.mean() - self.expected_radiance(0.5, 6)) < 0.05
