"""Unit tests for the scene description and scene intersection.

Tests cover:
- SceneObject validation
- Packed read-only arrays
- Closest-hit selection across objects
- Margin handling for rays leaving a surface
- Normal orientation (front and back faces)
"""

import numpy as np
import pytest


class TestSceneObject:
    """Tests for SceneObject construction and validation."""

    def test_new_shorthand(self):
        """Test the positional shorthand constructor."""
        from sidequest.scene.world import SceneObject

        obj = SceneObject.new(1, 2, 3, 0.5, (1, 0, 0), 0.25)
        assert obj.center == (1.0, 2.0, 3.0)
        assert obj.radius == 0.5
        assert obj.emission == (1.0, 0.0, 0.0)
        assert obj.reflectivity == 0.25

    @pytest.mark.parametrize("radius", [0.0, -1.0, float("nan")])
    def test_invalid_radius(self, radius):
        """Test that non-positive radii are rejected."""
        from sidequest.scene.world import SceneObject

        with pytest.raises(ValueError):
            SceneObject.new(0, 0, 0, radius, (0, 0, 0), 0.5)

    @pytest.mark.parametrize("reflectivity", [-0.1, 1.5])
    def test_invalid_reflectivity(self, reflectivity):
        """Test that reflectivity outside [0, 1] is rejected."""
        from sidequest.scene.world import SceneObject

        with pytest.raises(ValueError):
            SceneObject.new(0, 0, 0, 1.0, (0, 0, 0), reflectivity)

    def test_emission_must_be_rgb(self):
        """Test that emission needs exactly three components."""
        from sidequest.scene.world import SceneObject

        with pytest.raises(ValueError):
            SceneObject(center=(0, 0, 0), radius=1.0, emission=(1.0, 1.0), reflectivity=0.5)


class TestScene:
    """Tests for Scene packing."""

    def test_packed_arrays(self):
        """Test that object data is packed in order."""
        from sidequest.scene.world import Scene, SceneObject

        scene = Scene(
            objects=(
                SceneObject.new(0, 0, -5, 1.0, (1, 0, 0), 0.1),
                SceneObject.new(3, 0, -5, 2.0, (0, 1, 0), 0.9),
            ),
            ambient=(0.1, 0.1, 0.1),
        )
        assert len(scene) == 2
        assert scene.centers.shape == (2, 3)
        assert np.allclose(scene.radii, [1.0, 2.0])
        assert np.allclose(scene.emission[1], [0.0, 1.0, 0.0])
        assert np.allclose(scene.reflectivity, [0.1, 0.9])

    def test_arrays_are_read_only(self):
        """Test that a built scene cannot be modified through its arrays."""
        from sidequest.scene.world import Scene, SceneObject

        scene = Scene(objects=(SceneObject.new(0, 0, -5, 1.0, (1, 0, 0), 0.1),))
        with pytest.raises(ValueError):
            scene.radii[0] = 5.0

    def test_empty_scene(self):
        """Test that a scene without objects is allowed."""
        from sidequest.scene.world import Scene

        scene = Scene(objects=())
        assert len(scene) == 0
        assert scene.centers.shape == (0, 3)

    def test_negative_margin_rejected(self):
        """Test that a negative margin is rejected."""
        from sidequest.scene.world import Scene

        with pytest.raises(ValueError):
            Scene(objects=(), margin=-1.0)


class TestIntersectScene:
    """Tests for closest-hit scene queries."""

    def test_closest_of_two(self):
        """Test that the nearer of two spheres on the ray wins."""
        from sidequest.scene.intersection import intersect_scene
        from sidequest.scene.world import Scene, SceneObject

        scene = Scene(
            objects=(
                SceneObject.new(0, 0, -10, 1.0, (0, 0, 0), 0.5),
                SceneObject.new(0, 0, -5, 1.0, (0, 0, 0), 0.5),
            )
        )
        rec = intersect_scene(scene, np.zeros((1, 3)), np.array([[0.0, 0.0, -1.0]]))
        assert rec.hit[0]
        assert rec.object_index[0] == 1
        assert abs(rec.t[0] - 4.0) < 1e-9
        assert np.allclose(rec.point[0], [0.0, 0.0, -4.0])
        assert np.allclose(rec.normal[0], [0.0, 0.0, 1.0])
        assert rec.front_face[0]

    def test_miss_record(self):
        """Test that a miss has no object and infinite distance."""
        from sidequest.scene.intersection import intersect_scene
        from sidequest.scene.world import Scene, SceneObject

        def check(scene):
            rec = intersect_scene(scene, np.zeros((1, 3)), np.array([[0.0, 1.0, 0.0]]))
            assert not rec.hit[0]
            assert np.isinf(rec.t[0])
            assert rec.object_index[0] == -1

        check(Scene(objects=(SceneObject.new(0, 0, -5, 1.0, (0, 0, 0), 0.5),)))
        check(Scene(objects=()))

    def test_inside_hit_normal_faces_ray(self, enclosing_scene):
        """Test that a hit from inside flips the normal toward the ray."""
        from sidequest.scene.intersection import intersect_scene

        rec = intersect_scene(enclosing_scene, np.zeros((1, 3)), np.array([[1.0, 0.0, 0.0]]))
        assert rec.hit[0]
        assert not rec.front_face[0]
        assert np.allclose(rec.normal[0], [-1.0, 0.0, 0.0])

    def test_margin_skips_surface_origin(self):
        """Test that a ray leaving a surface does not re-hit it at t ~ 0."""
        from sidequest.scene.intersection import intersect_scene
        from sidequest.scene.world import Scene, SceneObject

        scene = Scene(objects=(SceneObject.new(0, 0, 0, 1.0, (0, 0, 0), 0.5),), margin=1e-5)
        # Start on the surface at (0, 0, 1), heading into the sphere
        rec = intersect_scene(scene, np.array([[0.0, 0.0, 1.0]]), np.array([[0.0, 0.0, -1.0]]))
        assert rec.hit[0]
        assert abs(rec.t[0] - 2.0) < 1e-9
